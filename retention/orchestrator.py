"""
PredictionOrchestrator - runs the prediction components over the member base.

Usage:
    from retention import InMemoryStorage, PredictionOrchestrator

    orchestrator = PredictionOrchestrator(InMemoryStorage.from_yaml("snapshot.yaml"))
    report = orchestrator.generate_report("all")
    print(report.to_dict()["churn"]["high_risk"])

    note = orchestrator.generate_member_recommendation("m-001")

Every call is stateless: reports are computed from request-scoped
accumulators and nothing is persisted.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

import pandas as pd

from .activity import (
    ActivitySnapshot,
    load_donation_status,
    load_engagement_score,
    load_member_activity,
    load_member_activity_between,
)
from .config import DEFAULT_CONFIG, PredictionConfig
from .contact import predict_contact_time
from .content import detect_content_gaps, recommend_content
from .errors import DataUnavailable, NotFound, ReportCancelled
from .forecast import EngagementForecaster
from .frames import Diagnostics, round_half_up, to_utc
from .narrative import NarrativeGenerator
from .records import ChurnAssessment, ChurnRiskFactors, EngagementForecast, Member
from .revenue import project_revenue
from .scorer import ChurnScorer
from .storage import StoragePort
from .trend import classify_counts, classify_trend, window_counts

logger = logging.getLogger(__name__)

SCOPES = ("all", "churn", "engagement", "content", "revenue", "recommendations")
DATA_SECTIONS = ("churn", "engagement", "content", "revenue")

# Activity types whose absence is called out in a member recommendation
CORE_ENGAGEMENT_AREAS = {
    "devotional_read": "Not using devotionals",
    "teaching_viewed": "Not watching teachings",
}


def normalize_scope(scope: Optional[str]) -> str:
    """Unknown or missing scopes run everything."""
    scope = (scope or "all").strip().lower()
    return scope if scope in SCOPES else "all"


@dataclass
class PredictionReport:
    """
    A point-in-time report.

    Attributes:
        scope: Normalized scope that was run
        generated_at: Reference time used for all windows
        sections: Section name -> JSON-ready payload
        diagnostics: Skipped malformed record counts by source
        duration_seconds: Wall-clock time to build
    """

    scope: str
    generated_at: pd.Timestamp
    sections: dict = field(default_factory=dict)
    diagnostics: dict = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def failed_sections(self) -> list[str]:
        return [
            name for name, payload in self.sections.items()
            if isinstance(payload, dict) and "error" in payload
        ]

    def to_dict(self) -> dict:
        """The public report shape: only the requested sections."""
        return dict(self.sections)


@dataclass
class _MemberProfile:
    member: Member
    activity: ActivitySnapshot
    factors: ChurnRiskFactors


@dataclass
class _RequestContext:
    now: pd.Timestamp
    cancel_event: threading.Event
    diagnostics: Diagnostics
    # Shared by every section of a report so member reads stay within max_workers
    member_pool: Optional[ThreadPoolExecutor] = None

    def checkpoint(self) -> None:
        if self.cancel_event.is_set():
            raise ReportCancelled("Report generation cancelled")


class PredictionOrchestrator:
    """
    Runs the retention components and assembles reports.

    Args:
        storage: Storage adapter (read-only)
        narrative: NarrativeGenerator; a fallback-only generator if None
        config: PredictionConfig. Uses DEFAULT_CONFIG if None.
        clock: Returns "now"; defaults to the current UTC time
    """

    def __init__(
        self,
        storage: StoragePort,
        narrative: Optional[NarrativeGenerator] = None,
        config: Optional[PredictionConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.storage = storage
        self.config = config or DEFAULT_CONFIG
        self.narrative = narrative or NarrativeGenerator(None, self.config)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.scorer = ChurnScorer(self.config)
        self.forecaster = EngagementForecaster(self.config)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def generate_report(
        self,
        scope: Optional[str] = "all",
        now: Optional[datetime] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> PredictionReport:
        """
        Build a report for the requested scope.

        Data sections run concurrently; recommendations are built last from
        their results. In an "all" report a section whose reads fail is
        replaced by an error marker, otherwise DataUnavailable propagates.

        Args:
            scope: all, churn, engagement, content, revenue or recommendations
            now: Reference time (defaults to the clock)
            cancel_event: Set by the caller to abandon the report

        Returns:
            PredictionReport

        Raises:
            DataUnavailable: A single-section report could not read its data
            ReportCancelled: cancel_event was set before completion
        """
        scope = normalize_scope(scope)
        ctx = self._context(now, cancel_event)
        start_time = time.time()
        logger.info("Generating %s report as of %s", scope, ctx.now.isoformat())

        builders = {
            "churn": self._churn_section,
            "engagement": self._engagement_section,
            "content": self._content_section,
            "revenue": self._revenue_section,
        }
        requested = [name for name in DATA_SECTIONS if scope in ("all", name)]

        sections = {}
        if requested:
            with ThreadPoolExecutor(
                max_workers=self.config.max_workers, thread_name_prefix="member"
            ) as member_pool, ThreadPoolExecutor(
                max_workers=len(requested), thread_name_prefix="section"
            ) as pool:
                ctx.member_pool = member_pool
                futures = {name: pool.submit(builders[name], ctx) for name in requested}
                for name, future in futures.items():
                    try:
                        sections[name] = future.result()
                    except DataUnavailable as e:
                        if scope != "all":
                            raise
                        logger.warning("Section %s failed: %s", name, e)
                        sections[name] = {"error": "data_unavailable", "message": str(e)}

        ctx.checkpoint()
        if scope in ("all", "recommendations"):
            sections["recommendations"] = self._recommendations_section(sections)

        report = PredictionReport(
            scope=scope,
            generated_at=ctx.now,
            sections=sections,
            diagnostics={"skipped_records": ctx.diagnostics.skipped},
            duration_seconds=time.time() - start_time,
        )
        logger.info(
            "Finished %s report in %.2fs (%d skipped records, failed sections: %s)",
            scope, report.duration_seconds, ctx.diagnostics.total_skipped,
            report.failed_sections or "none",
        )
        return report

    def generate_member_recommendation(self, member_id, now: Optional[datetime] = None) -> dict:
        """
        Analyse one member and suggest how to reach out.

        Raises:
            NotFound: If the member does not exist
            DataUnavailable: If the member's data cannot be read
        """
        ctx = self._context(now, None)
        member = self._read("member", lambda: self.storage.get_member(member_id))
        if member is None:
            raise NotFound(member_id)

        profile = self._member_profile(member, ctx, limit=self.config.member_activity_limit)
        factors = profile.factors
        scored = self.scorer.score_single(factors)

        recent, _ = window_counts(profile.activity.occurred_at, ctx.now, self.config.trend_window_days)
        forecast = self.forecaster.forecast_single(factors.engagement_score, factors.activity_trend, recent)

        areas = profile.activity.engagement_areas()
        history = f"Active in: {', '.join(areas[:5])}" if areas else "No recent activity recorded"

        risk_factors = list(scored["risk_factors"])
        if profile.activity.count < self.config.low_activity_records:
            risk_factors.append("Low overall engagement")
        for activity_type, note in CORE_ENGAGEMENT_AREAS.items():
            if activity_type not in areas:
                risk_factors.append(note)

        recommendation = self.narrative.retention_note(member.full_name, risk_factors, history)
        contact = predict_contact_time(profile.activity.occurred_at, self.config)

        return {
            "member": {
                "id": member.id,
                "name": member.full_name,
                "email": member.email,
                "tier": member.tier or "free",
            },
            "analysis": {
                "days_inactive": factors.days_inactive,
                "activity_count": profile.activity.count,
                "engagement_areas": areas,
                "risk_factors": risk_factors,
                "churn_probability": scored["probability"],
                "risk_tier": scored["risk_tier"],
                "trend": factors.activity_trend,
                "engagement_forecast": forecast,
            },
            "recommendation": recommendation,
            "optimal_contact_time": contact.to_dict(),
        }

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _churn_section(self, ctx: _RequestContext) -> dict:
        members = self._list_members()
        profiles = self._map_members(
            members,
            lambda m: self._member_profile(m, ctx, limit=self.config.activity_limit),
            ctx,
        )
        empty = {"at_risk_count": 0, "high_risk": 0, "medium_risk": 0, "low_risk": 0, "members": []}
        if not profiles:
            return empty

        factors = pd.DataFrame([
            {"member_id": p.member.id, **p.factors.to_dict()} for p in profiles
        ])
        result = self.scorer.score(factors)
        at_risk = result.at_risk()
        counts = result.tier_counts()

        assessments = []
        for position, row in at_risk.head(self.config.churn_report_limit).iterrows():
            profile = profiles[position]
            assessments.append(ChurnAssessment(
                member_id=profile.member.id,
                member_name=profile.member.full_name,
                email=profile.member.email,
                tier=profile.member.tier or "free",
                probability=float(row["probability"]),
                risk_tier=row["risk_tier"],
                risk_factors=list(row["risk_factors"]),
                days_inactive=int(row["days_inactive"]),
                engagement_score=float(row["engagement_score"]),
                optimal_contact=predict_contact_time(profile.activity.occurred_at, self.config),
            ))

        return {
            "at_risk_count": len(at_risk),
            "high_risk": counts["high"],
            "medium_risk": counts["medium"],
            "low_risk": counts["low"],
            "members": [a.to_dict() for a in assessments],
        }

    def _engagement_section(self, ctx: _RequestContext) -> dict:
        window_start = ctx.now - pd.Timedelta(days=2 * self.config.trend_window_days)
        members = self._list_members()
        rows = self._map_members(members, lambda m: self._engagement_row(m, window_start, ctx), ctx)
        rows = [row for row in rows if row is not None]

        if not rows:
            return {
                "overview": {
                    "total_tracked": 0,
                    "increasing_engagement": 0,
                    "declining_engagement": 0,
                    "stable_engagement": 0,
                    "avg_current_score": 0,
                    "avg_projected_score": 0,
                    "projected_trend": "stable",
                    "cohort_trend": "stable",
                },
                "top_growing": [],
                "needing_attention": [],
            }

        df = self.forecaster.forecast(pd.DataFrame(rows))
        increasing = int((df["trend"] == "increasing").sum())
        declining = int((df["trend"] == "declining").sum())
        avg_current = round_half_up(float(df["current_score"].mean()))
        avg_projected = round_half_up(float(df["projected_score"].mean()))
        if avg_projected > avg_current:
            projected_trend = "up"
        elif avg_projected < avg_current:
            projected_trend = "down"
        else:
            projected_trend = "stable"

        limit = self.config.engagement_list_limit
        growing = (
            df[df["trend"] == "increasing"]
            .sort_values("projected_score", ascending=False, kind="stable")
            .head(limit)
        )
        attention = (
            df[df["trend"] == "declining"]
            .sort_values("projected_score", ascending=True, kind="stable")
            .head(limit)
        )

        return {
            "overview": {
                "total_tracked": len(df),
                "increasing_engagement": increasing,
                "declining_engagement": declining,
                "stable_engagement": len(df) - increasing - declining,
                "avg_current_score": avg_current,
                "avg_projected_score": avg_projected,
                "projected_trend": projected_trend,
                "cohort_trend": classify_counts(
                    int(df["recent_activity_count"].sum()),
                    int(df["prior_activity_count"].sum()),
                    self.config,
                ),
            },
            "top_growing": [self._forecast_entry(row) for _, row in growing.iterrows()],
            "needing_attention": [self._forecast_entry(row) for _, row in attention.iterrows()],
        }

    def _content_section(self, ctx: _RequestContext) -> dict:
        start = ctx.now - pd.Timedelta(days=self.config.content_window_days)
        searches = self._read("search logs", lambda: self.storage.list_search_logs(start, ctx.now))
        ctx.checkpoint()
        gaps = detect_content_gaps(searches, ctx.now, self.config, ctx.diagnostics)
        top = self._read("top content", lambda: self.storage.list_top_content(self.config.top_content_limit))
        return {
            "gaps": [g.to_dict() for g in gaps],
            "recommendations": recommend_content(gaps, self.config.content_recommendation_limit),
            "top_performing": [c.to_dict() for c in top],
        }

    def _revenue_section(self, ctx: _RequestContext) -> dict:
        start = ctx.now - pd.Timedelta(days=self.config.revenue_window_days)
        donations = self._read("donations", lambda: self.storage.list_donations(start, ctx.now))
        recurring = self._read("recurring donations", self.storage.list_active_recurring_donations)
        ctx.checkpoint()
        return project_revenue(donations, recurring, self.config, ctx.diagnostics).to_dict()

    def _recommendations_section(self, sections: dict) -> list[dict]:
        churn = sections.get("churn") or {}
        engagement = (sections.get("engagement") or {}).get("overview") or {}
        content = sections.get("content") or {}
        revenue = sections.get("revenue") or {}
        return self.narrative.strategic_recommendations(
            high_risk_count=churn.get("high_risk", 0),
            engagement_trend=engagement.get("projected_trend", "stable"),
            content_gap_count=len(content.get("gaps", [])),
            revenue_trend=revenue.get("trend", "stable"),
        )

    # ------------------------------------------------------------------
    # Per-member work
    # ------------------------------------------------------------------

    def _member_profile(self, member: Member, ctx: _RequestContext, limit: int) -> _MemberProfile:
        activity = load_member_activity(self.storage, member.id, limit, ctx.diagnostics)
        donation_status = load_donation_status(
            self.storage, member.id, ctx.now, self.config, ctx.diagnostics
        )
        recent, _ = window_counts(activity.occurred_at, ctx.now, self.config.trend_window_days)
        engagement_score = load_engagement_score(
            self.storage, member.id, recent, self.config, ctx.diagnostics
        )
        days_inactive = activity.days_inactive(ctx.now, self.config.never_active_days)

        factors = ChurnRiskFactors(
            days_inactive=days_inactive,
            activity_trend=classify_trend(activity.occurred_at, ctx.now, self.config),
            engagement_score=engagement_score,
            donation_status=donation_status,
            last_interaction_days=days_inactive,
        )
        return _MemberProfile(member=member, activity=activity, factors=factors)

    def _engagement_row(self, member: Member, window_start, ctx: _RequestContext) -> Optional[dict]:
        """Forecast inputs for a member active in the last two trend windows."""
        activity = load_member_activity_between(
            self.storage, member.id, window_start, ctx.now, ctx.diagnostics
        )
        if activity.count == 0:
            return None

        recent, prior = window_counts(activity.occurred_at, ctx.now, self.config.trend_window_days)
        return {
            "member_id": member.id,
            "current_score": load_engagement_score(
                self.storage, member.id, recent, self.config, ctx.diagnostics
            ),
            "trend": classify_trend(activity.occurred_at, ctx.now, self.config),
            "recent_activity_count": recent,
            "prior_activity_count": prior,
        }

    @staticmethod
    def _forecast_entry(row: pd.Series) -> dict:
        return EngagementForecast(
            member_id=row["member_id"],
            current_score=float(row["current_score"]),
            trend=row["trend"],
            recent_activity_count=int(row["recent_activity_count"]),
            projected_score=float(row["projected_score"]),
            confidence=float(row["confidence"]),
        ).to_dict()

    def _map_members(self, members: list[Member], fn: Callable, ctx: _RequestContext) -> list:
        """
        Apply fn to every member on the report's shared worker pool.

        Results keep input order. Pending work is cancelled on the first
        failure or when the caller cancels.
        """
        def guarded(member):
            ctx.checkpoint()
            return fn(member)

        futures = [ctx.member_pool.submit(guarded, member) for member in members]
        results = []
        try:
            for future in futures:
                results.append(future.result())
        except BaseException:
            for future in futures:
                future.cancel()
            raise
        return results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _context(self, now: Optional[datetime], cancel_event: Optional[threading.Event]) -> _RequestContext:
        return _RequestContext(
            now=to_utc(now if now is not None else self.clock()),
            cancel_event=cancel_event or threading.Event(),
            diagnostics=Diagnostics(),
        )

    def _list_members(self) -> list[Member]:
        return self._read("members", self.storage.list_members)

    @staticmethod
    def _read(what: str, fetch: Callable):
        try:
            return fetch()
        except DataUnavailable:
            raise
        except (OSError, ConnectionError, TimeoutError) as e:
            raise DataUnavailable(f"Failed to read {what}: {e}") from e

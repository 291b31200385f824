"""
Pages component unit tests.

Tests for the dashboard pages wired to an in-memory store.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from itertools import count

import pytest

from atelier.adapters.clock import FixedClock
from atelier.adapters.memory_store import InMemoryStore
from atelier.components.pages import (
    PAGES,
    BusinessIntelligencePage,
    DashboardPage,
    FashionLabPage,
    FundingPage,
    ProblemSolutionPage,
    PrototypeVaultPage,
    avg_iterations,
    avg_rating,
    calculate_dilution,
    calculate_runway,
    days_until,
    investor_fit,
    pass_rate,
    priority_matrix,
    rbf_payment,
    rbf_payoff_months,
    runway_urgency,
    score_term_sheet,
    solve_rate,
)
from atelier.components.mutations import ValidationError
from atelier.domain.entities import Challenge, FitTest, FundingRound, Lineup, Prototype

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


def make_page(page_cls, store, clock):
    ids = count(1)
    return page_cls(store, clock, id_factory=lambda: f"id-{next(ids)}")


@pytest.fixture
def bi(store: InMemoryStore, clock: FixedClock) -> BusinessIntelligencePage:
    return make_page(BusinessIntelligencePage, store, clock)


@pytest.fixture
def psm(store: InMemoryStore, clock: FixedClock) -> ProblemSolutionPage:
    return make_page(ProblemSolutionPage, store, clock)


@pytest.fixture
def pv(store: InMemoryStore, clock: FixedClock) -> PrototypeVaultPage:
    return make_page(PrototypeVaultPage, store, clock)


@pytest.fixture
def fl(store: InMemoryStore, clock: FixedClock) -> FashionLabPage:
    return make_page(FashionLabPage, store, clock)


@pytest.fixture
def fd(store: InMemoryStore, clock: FixedClock) -> FundingPage:
    return make_page(FundingPage, store, clock)


# --- Shared Page Behavior ---


class TestDashboardPage:
    """Test behavior shared by every page."""

    def test_registry(self) -> None:
        assert set(PAGES) == {
            "business_intel",
            "problem_solution",
            "prototype_vault",
            "fashion_lab",
            "funding",
        }

    def test_base_page_is_abstract(self, store: InMemoryStore, clock: FixedClock) -> None:
        with pytest.raises(TypeError):
            DashboardPage(store, clock)

    def test_unknown_collection_raises(self, bi: BusinessIntelligencePage) -> None:
        with pytest.raises(ValueError, match="no collection"):
            bi.records("prototypes")

    def test_view_requires_view_spec(self, bi: BusinessIntelligencePage) -> None:
        with pytest.raises(ValueError, match="no derived view"):
            bi.view("comments")

    def test_toggle_favorite_without_favorite_set(self, psm: ProblemSolutionPage) -> None:
        with pytest.raises(ValueError, match="no favorite set"):
            psm.toggle_favorite("id-1")

    def test_pages_share_one_store(
        self, store: InMemoryStore, bi: BusinessIntelligencePage, clock: FixedClock
    ) -> None:
        """A second page over the same store sees persisted records."""
        bi.add_signal({"title": "Quiet luxury"})

        reopened = BusinessIntelligencePage(store, clock)

        assert [s.title for s in reopened.records("signals")] == ["Quiet luxury"]

    def test_reset_clears_everything(self, bi: BusinessIntelligencePage) -> None:
        signal, _ = bi.add_signal({"title": "Quiet luxury"})
        bi.toggle_favorite(signal.id)

        bi.reset()

        assert bi.records("signals") == []
        assert bi.records("alerts") == []
        assert bi.favorites.get() == frozenset()

    def test_export_backup(self, bi: BusinessIntelligencePage) -> None:
        signal, _ = bi.add_signal({"title": "Quiet luxury"})
        bi.toggle_favorite(signal.id)

        output = bi.export_backup()
        data = json.loads(output.content)

        assert output.filename.startswith("bi-backup-")
        assert data["signals"][0]["title"] == "Quiet luxury"
        assert data["alerts"][0]["message"] == "New signal added: Quiet luxury"
        assert data["favorites"] == [signal.id]


# --- Business Intelligence ---


class TestBusinessIntelligence:
    """Test signals, alerts and the intelligence summary."""

    def test_add_signal_raises_alert(self, bi: BusinessIntelligencePage) -> None:
        signal, errors = bi.add_signal({"title": "Quiet luxury", "strength": "82"})

        assert errors == []
        assert signal.strength == 82
        assert [a.message for a in bi.records("alerts")] == ["New signal added: Quiet luxury"]
        assert bi.unread_alerts() == 1

    def test_rejected_signal_raises_no_alert(self, bi: BusinessIntelligencePage) -> None:
        signal, errors = bi.add_signal({"title": ""})

        assert signal is None
        assert errors[0].code == "title_required"
        assert bi.records("alerts") == []

    def test_trajectory_change_alert(self, bi: BusinessIntelligencePage) -> None:
        signal, _ = bi.add_signal({"title": "Quiet luxury", "trajectory": "Rising"})

        bi.set_trajectory(signal.id, "Rising")
        bi.set_trajectory(signal.id, "Falling")

        messages = [a.message for a in bi.records("alerts")]
        assert messages == [
            "Quiet luxury trajectory changed to Falling",
            "New signal added: Quiet luxury",
        ]

    def test_mark_all_read(self, bi: BusinessIntelligencePage) -> None:
        bi.add_signal({"title": "A"})
        bi.add_signal({"title": "B"})

        assert bi.mark_all_read() == 2
        assert bi.mark_all_read() == 0
        assert bi.unread_alerts() == 0

    def test_favorite_leads_view(self, bi: BusinessIntelligencePage) -> None:
        strong, _ = bi.add_signal({"title": "Strong", "strength": 80})
        weak, _ = bi.add_signal({"title": "Weak", "strength": 40})

        assert [s.id for s in bi.view("signals", sort_by="strength").items] == [
            strong.id,
            weak.id,
        ]

        bi.toggle_favorite(weak.id)

        assert [s.id for s in bi.view("signals", sort_by="strength").items] == [
            weak.id,
            strong.id,
        ]

    def test_delete_drops_favorite(self, bi: BusinessIntelligencePage) -> None:
        signal, _ = bi.add_signal({"title": "A"})
        bi.toggle_favorite(signal.id)

        bi.service("signals").delete(signal.id)

        assert bi.favorites.get() == frozenset()

    def test_export_csv(self, bi: BusinessIntelligencePage) -> None:
        bi.add_signal({"title": "Quiet luxury", "strength": "82", "source": "WGSN"})
        archived, _ = bi.add_signal({"title": "Old news"})
        bi.service("signals").set_archived(archived.id)

        output = bi.export_csv("signals")

        assert output.filename.startswith("intelligence-")
        assert output.content.split("\n") == [
            "Signal,Type,Strength,Trajectory,Confidence,Source,Date",
            "Quiet luxury,Market,82,Rising,50,WGSN,Jun 01",
        ]

    @pytest.mark.parametrize(
        ("trajectory", "strength", "expected"),
        [
            ("Rising", 80, "Act on rising high-strength signals now."),
            ("Rising", 50, "Monitor rising signals — approaching action threshold."),
            ("Falling", 90, "No urgent signals. Continue data collection."),
        ],
    )
    def test_advisory_recommendation(
        self, bi: BusinessIntelligencePage, trajectory: str, strength: int, expected: str
    ) -> None:
        bi.add_signal({"title": "T", "trajectory": trajectory, "strength": strength})

        assert bi.advisory().endswith(f"• Recommendation: {expected}")

    def test_report(self, bi: BusinessIntelligencePage) -> None:
        bi.add_signal({"title": "A", "strength": 80})
        bi.add_signal({"title": "B", "strength": 41, "trajectory": "Stable"})

        report = bi.report()

        assert report.title == "Business Intelligence Report"
        assert report.summary == "Signals: 2 | Avg Strength: 61% | Rising: 1"
        assert len(report.blocks) == 2


# --- Problem-Solution Mapper ---


class TestProblemSolution:
    """Test challenges, solutions and the challenge cascade."""

    def test_delete_challenge_cascades(self, psm: ProblemSolutionPage) -> None:
        challenge, _ = psm.service("challenges").create({"title": "Sizing returns"})
        psm.add_solution(challenge.id, {"title": "Fit guide"})
        psm.add_solution(challenge.id, {"title": "Size quiz"})

        cascaded, errors = psm.service("challenges").delete(challenge.id)

        assert errors == []
        assert cascaded == {"psm_solutions": 2}
        assert psm.records("challenges") == []
        assert psm.records("solutions") == []

    def test_dangling_reference_title(self, psm: ProblemSolutionPage) -> None:
        solution, _ = psm.add_solution("gone", {"title": "Orphan"})

        assert psm.challenge_title(solution) == "—"

    def test_export_includes_archived_and_solution_counts(
        self, psm: ProblemSolutionPage
    ) -> None:
        challenge, _ = psm.service("challenges").create({"title": "Sizing returns"})
        psm.add_solution(challenge.id, {"title": "Fit guide"})
        psm.add_solution(challenge.id, {"title": "Size quiz"})
        old, _ = psm.service("challenges").create({"title": "Old problem"})
        psm.service("challenges").set_archived(old.id)

        lines = psm.export_csv("challenges").content.split("\n")

        assert lines[0] == "Challenge,Category,Severity,Impact,Status,Solutions"
        assert "Old problem,Design,medium,50,archived,0" in lines
        assert "Sizing returns,Design,medium,50,open,2" in lines

    def test_solve_rate(self) -> None:
        challenges = [
            Challenge(id="a", title="A", status="solved"),
            Challenge(id="b", title="B"),
            Challenge(id="c", title="C"),
        ]

        assert solve_rate(challenges) == 33
        assert solve_rate([]) == 0

    def test_priority_matrix(self) -> None:
        challenges = [
            Challenge(id="a", title="A", severity="critical", impact=60),
            Challenge(id="b", title="B", severity="high", impact=59),
            Challenge(id="c", title="C", severity="low", impact=90),
        ]

        assert [c.id for c in priority_matrix(challenges)] == ["a"]

    def test_advisory_flags_critical(self, psm: ProblemSolutionPage) -> None:
        psm.service("challenges").create({"title": "Dye lots", "severity": "critical"})

        assert "Recommendation: Address critical challenges first." in psm.advisory()

    def test_strategy_report(self, psm: ProblemSolutionPage) -> None:
        challenge, _ = psm.service("challenges").create(
            {"title": "Sizing returns", "severity": "high", "impact": 80}
        )
        psm.add_solution(challenge.id, {"title": "Fit guide", "effectiveness": 90})

        report = psm.strategy_report()

        assert report.title == "Strategy Report"
        assert "Critical/High Impact: Sizing returns" in report.blocks[0]
        assert "1. Fit guide — 90% effective" in report.blocks[1]


# --- Prototype Vault ---


class TestPrototypeVault:
    """Test prototype versions, favorites and the archive shelf."""

    def test_bump_version(self, pv: PrototypeVaultPage) -> None:
        proto, _ = pv.service("prototypes").create({"title": "Jacket"})

        bumped, _ = pv.bump_version(proto.id)

        assert (bumped.version, bumped.iterations) == (2, 2)

    def test_duplicate_resets(self, pv: PrototypeVaultPage) -> None:
        proto, _ = pv.service("prototypes").create(
            {"title": "Jacket", "version": 3, "status": "approved", "favorited": True}
        )

        copy, _ = pv.service("prototypes").duplicate(proto.id)

        assert copy.title == "Jacket (Copy)"
        assert (copy.version, copy.status, copy.favorited) == (1, "draft", False)

    def test_toggle_favorite_uses_record_flag(self, pv: PrototypeVaultPage) -> None:
        first, _ = pv.service("prototypes").create({"title": "First"})
        pv.service("prototypes").create({"title": "Second"})

        assert pv.toggle_favorite(first.id) is True

        view = pv.view("prototypes")
        assert view.items[0].id == first.id
        assert view.kpis["favorites"] == 1
        assert pv.toggle_favorite(first.id) is False

    def test_toggle_missing_prototype_raises(self, pv: PrototypeVaultPage) -> None:
        with pytest.raises(ValueError, match="not found"):
            pv.toggle_favorite("missing")

    def test_toggle_favorite_reports_failed_update(
        self, pv: PrototypeVaultPage, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        proto, _ = pv.service("prototypes").create({"title": "Jacket"})
        monkeypatch.setattr(
            pv.services["prototypes"],
            "update",
            lambda record_id, patch: (None, [ValidationError("invalid_record", "rejected")]),
        )

        with pytest.raises(ValueError, match="invalid_record"):
            pv.toggle_favorite(proto.id)
        assert pv.records("prototypes")[0].favorited is False

    def test_archive_shelf(self, pv: PrototypeVaultPage) -> None:
        proto, _ = pv.service("prototypes").create({"title": "Jacket"})
        pv.service("prototypes").set_archived(proto.id)

        assert [p.id for p in pv.archived()] == [proto.id]
        assert pv.view("prototypes").items == []
        assert [p.id for p in pv.view("prototypes", archived=True).items] == [proto.id]

    def test_avg_iterations(self) -> None:
        protos = [
            Prototype(id="a", title="A", iterations=1),
            Prototype(id="b", title="B", iterations=2),
        ]

        assert avg_iterations(protos) == 1.5
        assert avg_iterations([]) == 0

    def test_advisory_for_small_vault(self, pv: PrototypeVaultPage) -> None:
        assert pv.advisory().endswith("Start adding prototypes to build your vault.")


# --- Fashion Lab ---


class TestFashionLab:
    """Test designs, drops and the IP ledger."""

    def test_add_ip_record_default_ownership(self, fl: FashionLabPage) -> None:
        design, _ = fl.service("designs").create({"name": "Raw denim jacket"})

        record, errors = fl.add_ip_record(design.id)

        assert errors == []
        assert record.ownership == {"You": 100.0}
        assert record.design_id == design.id
        assert fl.ip_record_text(record.id).startswith("IP Record: Raw denim jacket")

    def test_ip_record_requires_design(self, fl: FashionLabPage) -> None:
        record, errors = fl.add_ip_record("")

        assert record is None
        assert errors[0].code == "design_id_required"

    def test_ip_record_text_missing(self, fl: FashionLabPage) -> None:
        assert fl.ip_record_text("missing") is None
        assert fl.export_ip_record("missing") is None

    def test_add_version(self, fl: FashionLabPage) -> None:
        design, _ = fl.service("designs").create({"name": "Raw denim jacket"})

        updated, _ = fl.add_version(design.id)

        assert updated.versions == ["v1", "v2"]

    def test_add_version_missing(self, fl: FashionLabPage) -> None:
        design, errors = fl.add_version("missing")

        assert design is None
        assert errors[0].code == "record_not_found"

    def test_days_until(self) -> None:
        assert days_until("2025-06-03T00:00:00+00:00", NOW) == 2
        assert days_until("2025-06-03", NOW) == 2
        assert days_until("", NOW) is None
        assert days_until("soon", NOW) is None

    def test_upcoming_drops(self, fl: FashionLabPage) -> None:
        fl.service("collections").create({"name": "Summer", "drop_date": "2025-07-01"})
        fl.service("collections").create({"name": "Spring", "drop_date": "2025-05-01"})

        assert [c.name for c in fl.upcoming_drops()] == ["Summer"]

    def test_days_to_drop(self, fl: FashionLabPage) -> None:
        summer, _ = fl.service("collections").create({"name": "Summer", "drop_date": "2025-07-01"})

        assert fl.days_to_drop(summer) == 30
        assert fl.days_to_drop(Lineup(id="x", name="Undated")) is None

    def test_add_tech_pack(self, fl: FashionLabPage) -> None:
        design, _ = fl.service("designs").create({"name": "Raw denim jacket"})

        pack, errors = fl.add_tech_pack(
            design.id,
            {
                "fabric_specs": "14oz selvedge",
                "version": 4,
                "approved": True,
                "measurements": {"Chest": " 52cm ", "": "dropped"},
            },
        )

        assert errors == []
        assert (pack.version, pack.approved) == (1, False)
        assert pack.measurements == {"Chest": "52cm"}
        text = fl.tech_pack_text(pack.id)
        assert text.startswith("Tech Pack: Raw denim jacket")
        assert "Fabric: 14oz selvedge" in text
        assert fl.export_tech_pack(pack.id).filename.startswith("techpack-")

    def test_tech_pack_requires_design(self, fl: FashionLabPage) -> None:
        pack, errors = fl.add_tech_pack("")

        assert pack is None
        assert errors[0].code == "design_id_required"
        assert fl.export_tech_pack("missing") is None

    def test_add_fit_test_defaults_and_clamps(self, fl: FashionLabPage) -> None:
        first, errors = fl.add_fit_test("d1", {"tester_name": "Ana"})
        second, _ = fl.add_fit_test("d1", {"tester_name": "Ben", "rating": "14", "size": "XXXL"})

        assert errors == []
        assert (first.rating, first.size, first.approved) == (7, "M", False)
        assert (second.rating, second.size) == (10, "M")

    def test_fit_test_requires_tester(self, fl: FashionLabPage) -> None:
        test, errors = fl.add_fit_test("d1", {"tester_name": "  "})

        assert test is None
        assert errors[0].code == "tester_name_required"

    def test_fit_test_kpis(self, fl: FashionLabPage) -> None:
        first, _ = fl.add_fit_test("d1", {"tester_name": "Ana", "rating": 8})
        fl.add_fit_test("d1", {"tester_name": "Ben", "rating": 7, "size": "L"})
        fl.add_fit_test("d1", {"tester_name": "Cy", "rating": 6})

        assert fl.toggle_approved("fit_tests", first.id) is True

        view = fl.view("fit_tests")
        assert view.kpis["approved"] == 1
        assert view.kpis["avg_rating"] == 7.0
        assert view.kpis["pass_rate"] == 33
        assert view.breakdowns["by_size"]["M"] == 2

    def test_fit_test_helpers(self) -> None:
        tests = [
            FitTest(id="a", tester_name="A", rating=8, approved=True),
            FitTest(id="b", tester_name="B", rating=7),
        ]

        assert avg_rating(tests) == 7.5
        assert pass_rate(tests) == 50
        assert (avg_rating([]), pass_rate([])) == (0, 0)

    def test_fit_report(self, fl: FashionLabPage) -> None:
        design, _ = fl.service("designs").create({"name": "Raw denim jacket"})
        test, _ = fl.add_fit_test(
            design.id, {"tester_name": "Ana", "rating": 9, "issues": "tight sleeve, short hem"}
        )

        text = fl.fit_report_text(test.id)

        assert text.splitlines() == [
            "Fit Report: Raw denim jacket",
            "Tester: Ana",
            "Size: M",
            "Rating: 9/10",
            "Notes: ",
            "Issues: tight sleeve, short hem",
        ]
        assert fl.export_fit_report(test.id).filename.startswith("fit-report-")

    def test_toggle_approved(self, fl: FashionLabPage) -> None:
        pack, _ = fl.add_tech_pack("d1")

        assert fl.toggle_approved("tech_packs", pack.id) is True
        assert fl.view("tech_packs").kpis["approved"] == 1
        assert fl.toggle_approved("tech_packs", pack.id) is False

    def test_toggle_approved_rejects_other_collections(self, fl: FashionLabPage) -> None:
        with pytest.raises(ValueError, match="cannot be approved"):
            fl.toggle_approved("designs", "d1")
        with pytest.raises(ValueError, match="not found"):
            fl.toggle_approved("fit_tests", "missing")

    def test_trends_sorted_by_score(self, fl: FashionLabPage) -> None:
        fl.service("trends").create({"name": "Quiet luxury", "score": 60, "category": "Mood"})
        fl.service("trends").create({"name": "Gorpcore", "score": "140", "projected": "SS26"})
        fl.service("trends").create({"name": "Indie sleaze"})

        view = fl.view("trends")

        assert [t.name for t in view.items] == ["Gorpcore", "Quiet luxury", "Indie sleaze"]
        assert [t.score for t in view.items] == [100, 60, 50]
        assert view.kpis["avg_score"] == 70

        content = fl.export_trends().content
        assert "Gorpcore | Score: 100 |  | SS26" in content
        assert "Quiet luxury | Score: 60 | Mood | " in content

    def test_export_trends_empty(self, fl: FashionLabPage) -> None:
        output = fl.export_trends()

        assert output.filename.startswith("trends-")
        assert "No trends" in output.content

    def test_report_counts_tech_packs_and_fit_tests(self, fl: FashionLabPage) -> None:
        fl.add_tech_pack("d1")
        fl.add_fit_test("d1", {"tester_name": "Ana"})

        summary = fl.report().summary

        assert "Tech Packs: 1" in summary
        assert "Fit Tests: 1" in summary

    def test_design_favorites(self, fl: FashionLabPage) -> None:
        design, _ = fl.service("designs").create({"name": "Raw denim jacket"})

        assert fl.toggle_favorite(design.id) is True
        assert fl.view("designs").kpis["favorites"] == 1


# --- Funding ---


class TestFundingHelpers:
    """Test readiness calculations."""

    def test_dilution(self) -> None:
        assert calculate_dilution(4_000_000, 1_000_000) == 20.0
        assert calculate_dilution(0, 0) == 0

    def test_runway(self) -> None:
        assert calculate_runway(100_000, 0) == 999
        assert calculate_runway(50_000, 20_000) == 2

    @pytest.mark.parametrize(
        ("months", "expected"),
        [(2, "critical"), (5, "warning"), (6, "healthy")],
    )
    def test_runway_urgency(self, months: int, expected: str) -> None:
        assert runway_urgency(months) == expected

    def test_investor_fit(self) -> None:
        assert investor_fit(["seed"], ["fashion"], "seed", "fashion") == 100
        assert investor_fit(["seed"], ["fintech"], "seed", "fashion") == 75
        assert investor_fit([], [], "seed", "fashion") == 50

    @pytest.mark.parametrize(
        ("favorable", "expected"),
        [
            ([True, True, True, True, False], "excellent"),
            ([True, True, True, False, False], "good"),
            ([True, False], "fair"),
            ([False, False, False], "poor"),
            ([], "poor"),
        ],
    )
    def test_score_term_sheet(self, favorable: list[bool], expected: str) -> None:
        assert score_term_sheet(favorable) == expected

    def test_rbf(self) -> None:
        assert rbf_payment(5, 20_000) == 1000
        assert rbf_payoff_months(50_000, 150, 1000) == 75
        assert rbf_payoff_months(10_000, 130, 3000) == 5


class TestFundingPage:
    """Test rounds and the investor pipeline."""

    def test_add_investor_scores_fit(self, fd: FundingPage) -> None:
        investor, errors = fd.add_investor(
            {"name": "Studio Fund", "stages": "seed, series-a", "sectors": ["fashion"]},
            stage="seed",
            sector="fashion",
        )

        assert errors == []
        assert investor.fit_score == 100
        assert investor.stages == ["seed", "series-a"]

    def test_rescore_investors(self, fd: FundingPage) -> None:
        fd.add_investor(
            {"name": "Studio Fund", "stages": ["seed"], "sectors": ["fashion"]},
            stage="seed",
            sector="fashion",
        )

        assert fd.rescore_investors(stage="growth", sector="fashion") == 1
        assert fd.records("investors")[0].fit_score == 75
        assert fd.rescore_investors(stage="growth", sector="fashion") == 0

    def test_round_dilution(self, fd: FundingPage) -> None:
        funding_round = FundingRound(id="r", name="Seed", target=1_000_000, valuation=5_000_000)

        assert fd.round_dilution(funding_round) == 20.0

    def test_failed_rounds_are_archived(self, fd: FundingPage) -> None:
        live, _ = fd.service("rounds").create({"name": "Seed", "target": 500_000})
        failed, _ = fd.service("rounds").create({"name": "Bridge", "status": "failed"})

        assert [r.id for r in fd.live("rounds")] == [live.id]
        assert [r.id for r in fd.view("rounds", archived=True).items] == [failed.id]

    def test_readiness(self, fd: FundingPage) -> None:
        text = fd.readiness(50_000, 20_000)

        assert "• Runway: 2 months (CRITICAL)" in text
        assert text.endswith("Raise a bridge or cut burn immediately.")

    def test_report(self, fd: FundingPage) -> None:
        fd.service("rounds").create(
            {"name": "Seed", "target": 1_000_000, "valuation": 5_000_000, "raised": 250_000}
        )

        report = fd.report()

        assert report.summary == "Rounds: 1 | Raised: $250,000 | Investors: 0"
        assert "Dilution: 20.0%" in report.blocks[0]

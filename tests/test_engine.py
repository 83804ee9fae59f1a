"""Tests for the catch-up engine: merging, the standard panel, output
ordering and cross-vaccine invariants.
"""

import pytest
from datetime import date

from catchup_src import engine as engine_module
from catchup_src.config import config
from catchup_src.engine import CatchUpRulesEngine, STANDARD_PANEL, generate_catchup_recommendations
from catchup_src.models import DateParseError, DecisionType
from catchup_src.store import SQLiteCatchUpStore


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def mixed_patient(run):
    """An 8-year-old with a partial, messy history."""
    return run(
        "2017-03-10", "2025-07-02",
        history={
            "Pediarix": ["2017-05-10", "2017-07-12"],
            "Infanrix": ["2017-09-15"],
            "Prevnar 13": ["2017-05-10", "2017-07-12"],
            "Engerix-B": ["2017-03-10", "2017-05-10"],
            "ProQuad": ["2018-03-15"],
            "Rotarix": ["2017-05-10"],
            "Smallpox": ["2020-01-01"],
        },
        conditions={"asplenia": True},
    )


# =============================================================================
# Tests: Worked Scenarios
# =============================================================================

class TestScenarios:
    """End-to-end clinical scenarios."""

    def test_dtap_dose_five_not_necessary(self, recommend):
        rec = recommend(
            "DTaP", "2010-09-21", "2015-02-01",
            history={"DTaP": ["2011-01-19", "2011-02-17", "2011-04-07", "2014-11-19"]},
        )
        assert rec.series_complete is True
        assert any("not necessary" in note for note in rec.notes)

    def test_no_rotavirus_for_unvaccinated_toddler(self, run):
        result = run("2023-01-01", "2025-07-02")
        assert result.get("Rotavirus") is None

    def test_menacwy_single_dose_at_sixteen(self, recommend):
        rec = recommend("MenACWY", "2009-01-01", "2025-07-02")
        assert rec.recommendation_text.startswith("Give MenACWY dose 1 now")

        rec = recommend(
            "MenACWY", "2009-01-01", "2025-07-02",
            history={"MenACWY": ["2025-01-15"]},
        )
        assert rec.series_complete is True

    def test_pcv_single_dose_for_three_year_old(self, recommend):
        rec = recommend("Pneumococcal (PCV)", "2022-01-01", "2025-07-02")
        assert "1 dose" in rec.recommendation_text
        assert "PCV20" in rec.recommendation_text


# =============================================================================
# Tests: History Handling
# =============================================================================

class TestHistoryMerging:
    """Synonyms merge into one timeline; doses are evaluated in date order."""

    def test_dtap_and_tdap_merge(self, run):
        result = run(
            "2012-01-01", "2024-03-01",
            history={
                "DTaP": ["2012-03-01", "2012-05-01", "2012-07-01", "2013-04-01", "2016-06-01"],
                "Tdap": ["2023-06-01"],
            },
        )
        names = [r.vaccine_name for r in result.recommendations]
        assert names.count("Tdap") == 1
        assert "DTaP" not in names
        assert result.get("Tdap").series_complete is True

    def test_unsorted_doses(self, recommend):
        rec = recommend(
            "Hepatitis B", "2025-01-01", "2025-03-01",
            history={"HepB": ["2025-02-01", "2025-01-01"]},
        )
        assert rec.recommendation_text == "Give Hepatitis B dose 3 on or after 2025-06-18 (final dose)"

    def test_doses_split_across_brand_names(self, recommend):
        rec = recommend(
            "Hepatitis B", "2025-01-01", "2025-03-01",
            history={"Engerix-B": ["2025-01-01"], "Recombivax HB": ["2025-02-01"]},
        )
        assert rec.recommendation_text.startswith("Give Hepatitis B dose 3")

    def test_blank_name_skipped(self, run):
        baseline = run("2020-01-01", "2025-07-02")
        result = run("2020-01-01", "2025-07-02", history={"   ": ["2021-01-01"]})
        assert len(result.recommendations) == len(baseline.recommendations)

    def test_unrecognized_vaccine(self, recommend):
        rec = recommend(
            "Smallpox", "2000-01-01", "2025-07-02",
            history={"Smallpox": ["2001-01-01"]},
        )
        assert rec.vaccine_name == "Smallpox"
        assert rec.recommendation_text == "No specific recommendation; consult CDC guidelines"
        assert rec.series_complete is False
        assert rec.decision_type == DecisionType.ROUTINE


class TestGracePeriod:
    """The 4-day grace period at the engine level."""

    def test_dose_four_days_early_counts(self, recommend):
        rec = recommend("DTaP", "2024-01-01", "2024-03-01", history={"DTaP": ["2024-02-08"]})
        assert rec.recommendation_text == "Give DTaP dose 2 on or after 2024-03-07"

    def test_dose_five_days_early_not_counted(self, recommend):
        rec = recommend("DTaP", "2024-01-01", "2024-03-01", history={"DTaP": ["2024-02-07"]})
        assert rec.recommendation_text == "Give DTaP dose 1 now"
        assert "Dose(s) 1 given too early per CDC guidelines - not counted" in rec.notes

    def test_zero_grace_period(self, make_request, fixed_clock):
        strict = CatchUpRulesEngine(grace_period_days=0, clock=lambda: fixed_clock)
        request = make_request("2024-01-01", "2024-03-01", history={"DTaP": ["2024-02-08"]})
        rec = strict.generate_catchup_recommendations(request).get("DTaP")
        assert rec.recommendation_text == "Give DTaP dose 1 now"

    def test_hpv_two_dose_interval_uses_engine_grace_period(
        self, recommend, make_request, fixed_clock
    ):
        """Doses 147 days apart complete the 2-dose series only with the 4-day grace period."""
        history = {"HPV": ["2024-01-01", "2024-05-27"]}
        rec = recommend("HPV", "2012-01-01", "2024-07-01", history=history)
        assert rec.series_complete is True

        strict = CatchUpRulesEngine(grace_period_days=0, clock=lambda: fixed_clock)
        request = make_request("2012-01-01", "2024-07-01", history=history)
        rec = strict.generate_catchup_recommendations(request).get("HPV")
        assert rec.recommendation_text == "Give HPV dose 3 on or after 2024-08-19 (final dose)"


# =============================================================================
# Tests: Output
# =============================================================================

class TestOutput:
    """Panel coverage, naming, ordering and result metadata."""

    def test_panel_for_toddler(self, run):
        result = run("2023-01-01", "2025-07-02")
        names = {r.vaccine_name for r in result.recommendations}
        assert names == {
            "Hepatitis B", "DTaP", "HIB", "Pneumococcal (PCV)", "Polio (IPV)",
            "COVID-19", "Influenza", "MMR", "Varicella", "Hepatitis A", "HPV",
            "MenACWY", "MenB", "Dengue", "RSV",
        }
        assert len(result.recommendations) == len(STANDARD_PANEL) - 1

    @pytest.mark.parametrize("birth,name", [
        ("2019-01-01", "DTaP"),
        ("2018-07-01", "Tdap"),
    ])
    def test_dtap_display_by_age(self, run, birth, name):
        result = run(birth, "2025-07-02")
        names = [r.vaccine_name for r in result.recommendations]
        assert name in names
        assert ({"DTaP", "Tdap"} - {name}).isdisjoint(names)

    def test_sorted_by_name(self, mixed_patient):
        names = [r.vaccine_name for r in mixed_patient.recommendations]
        assert names == sorted(names, key=str.lower)

    def test_unique_names(self, mixed_patient):
        names = [r.vaccine_name.lower() for r in mixed_patient.recommendations]
        assert len(names) == len(set(names))

    def test_history_vaccine_not_in_panel_included(self, mixed_patient):
        assert mixed_patient.get("Smallpox") is not None

    def test_metadata(self, run, fixed_clock):
        result = run("2023-01-01", "2025-07-02")
        assert result.processed_at == fixed_clock
        assert result.cdc_version == "2025.1"
        assert result.patient_age

    def test_deterministic(self, run):
        first = run("2017-03-10", "2025-07-02", history={"DTaP": ["2017-05-10"]})
        second = run("2017-03-10", "2025-07-02", history={"DTaP": ["2017-05-10"]})
        assert first.to_dict() == second.to_dict()

    def test_dict_request(self, engine):
        result = engine.generate_catchup_recommendations({
            "birthDate": "2022-01-01",
            "currentDate": "2025-07-02",
            "vaccineHistory": [{"vaccineName": "PCV13", "doses": [{"date": "2022-03-01"}]}],
        })
        assert result.get("Pneumococcal (PCV)") is not None

    def test_dict_request_bad_date(self, engine):
        with pytest.raises(DateParseError):
            engine.generate_catchup_recommendations({"birthDate": "2022-13-01"})

    def test_module_level_function(self):
        result = generate_catchup_recommendations({
            "birthDate": "2022-01-01",
            "currentDate": "2025-07-02",
        })
        assert result.cdc_version == config.CDC_VERSION


# =============================================================================
# Tests: Invariants
# =============================================================================

class TestInvariants:
    """Properties that hold for every recommendation."""

    def test_complete_never_says_give(self, mixed_patient):
        for rec in mixed_patient.recommendations:
            if rec.series_complete:
                assert not rec.recommendation_text.startswith("Give"), rec.vaccine_name

    def test_actionable_recommendations_have_due_date(self, mixed_patient):
        for rec in mixed_patient.recommendations:
            if rec.recommendation_text.startswith("Give"):
                assert rec.next_dose_date is not None, rec.vaccine_name
                assert rec.next_dose_date >= date(2025, 7, 2)

    def test_live_vaccines_blocked_when_immunocompromised(self, run):
        result = run("2024-01-01", "2025-07-02", conditions={"immunocompromised": True})
        for name in ("MMR", "Varicella"):
            rec = result.get(name)
            assert rec.decision_type == DecisionType.NOT_RECOMMENDED
            assert rec.next_dose_date is None
            assert rec.contraindications == ["Severe immunodeficiency"]

    def test_aged_out_has_no_due_date(self, recommend):
        rec = recommend(
            "Rotavirus", "2024-01-01", "2024-10-01",
            history={"RotaTeq": ["2024-03-01"]},
        )
        assert rec.decision_type == DecisionType.AGED_OUT
        assert rec.next_dose_date is None


# =============================================================================
# Tests: Persistence and Errors
# =============================================================================

class TestEngineIntegration:
    """Store hand-off and recommender failure handling."""

    def test_result_saved_to_store(self, tmp_path, make_request, fixed_clock):
        store = SQLiteCatchUpStore(str(tmp_path / "catchup.db"))
        engine = CatchUpRulesEngine(store=store, clock=lambda: fixed_clock)
        result = engine.generate_catchup_recommendations(make_request("2023-01-01", "2025-07-02"))

        records = store.list_recent()
        assert len(records) == 1
        assert records[0].result == result

    def test_recommender_failure_propagates(self, engine, monkeypatch, make_request):
        def broken(ctx, excluded_notes=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(engine_module, "evaluate", broken)
        with pytest.raises(RuntimeError):
            engine.generate_catchup_recommendations(make_request("2023-01-01", "2025-07-02"))

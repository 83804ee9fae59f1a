"""Tests for the adolescent recommenders: Tdap, HPV, MenACWY and MenB."""

from datetime import date

from catchup_src.models import DecisionType


# =============================================================================
# Tests: Tdap (7 years and older)
# =============================================================================

CHILDHOOD_DTAP = ["2012-03-01", "2012-05-01", "2012-07-01", "2013-04-01", "2016-06-01"]


class TestTdap:
    """Test Tdap catch-up and the adolescent booster."""

    def test_unvaccinated_eight_year_old(self, recommend):
        rec = recommend("Tdap", "2016-01-01", "2024-06-01")
        assert rec.recommendation_text == "Give Tdap now as part of catch-up series"
        assert rec.decision_type == DecisionType.CATCH_UP
        assert "3 more doses needed to complete primary series" in rec.notes
        assert "Will still need adolescent Tdap booster at 11-12 years" in rec.notes

    def test_catch_up_dose_at_ten_counts_as_booster(self, recommend):
        rec = recommend("Tdap", "2014-01-01", "2024-06-01")
        assert "This dose counts as adolescent Tdap booster (no additional booster needed)" in rec.notes

    def test_third_dose_waits_six_months(self, recommend):
        """Dose 3 is 6 months after dose 2 when dose 1 was after the first birthday."""
        rec = recommend(
            "Tdap", "2015-01-01", "2022-05-01",
            history={"Tdap": ["2022-03-01", "2022-04-01"]},
        )
        assert rec.recommendation_text == "Give Tdap on or after 2022-10-01 as part of catch-up series"
        assert rec.next_dose_date == date(2022, 10, 1)
        assert "Dose given at age 7-9 years counts as catch-up dose" in rec.notes

    def test_adolescent_booster_due(self, recommend):
        rec = recommend("Tdap", "2012-01-01", "2024-03-01", history={"DTaP": CHILDHOOD_DTAP})
        assert rec.recommendation_text == "Give Tdap adolescent booster now"
        assert rec.decision_type == DecisionType.ROUTINE
        assert rec.next_dose_date == date(2024, 3, 1)

    def test_adolescent_booster_late_is_catch_up(self, recommend):
        rec = recommend("Tdap", "2009-01-01", "2024-03-01", history={"DTaP": CHILDHOOD_DTAP})
        assert rec.decision_type == DecisionType.CATCH_UP

    def test_adolescent_booster_received(self, recommend):
        rec = recommend(
            "Tdap", "2012-01-01", "2024-03-01",
            history={"DTaP": CHILDHOOD_DTAP, "Boostrix": ["2023-06-01"]},
        )
        assert rec.series_complete is True
        assert rec.recommendation_text == "Tdap series complete"
        assert "Adolescent Tdap booster received" in rec.notes

    def test_adult_without_adolescent_dose(self, recommend):
        rec = recommend(
            "Tdap", "2000-01-01", "2024-03-01",
            history={"DTaP": ["2000-03-01", "2000-05-01", "2000-07-01"]},
        )
        assert rec.recommendation_text == "Give Tdap booster now (no adolescent dose on record)"
        assert rec.decision_type == DecisionType.CATCH_UP

    def test_primary_complete_before_eleven(self, recommend):
        rec = recommend(
            "Tdap", "2015-01-01", "2024-03-01",
            history={"DTaP": ["2015-03-01", "2015-05-01", "2015-07-01"]},
        )
        assert rec.series_complete is True
        assert "Adolescent Tdap booster due at 11-12 years" in rec.notes


# =============================================================================
# Tests: HPV
# =============================================================================

class TestHPV:
    """Test HPV 2-dose and 3-dose schedules."""

    def test_under_nine(self, recommend):
        rec = recommend("HPV", "2016-01-01", "2024-06-01")
        assert rec.recommendation_text == "HPV vaccination not recommended under 9 years"
        assert rec.decision_type == DecisionType.NOT_RECOMMENDED

    def test_routine_first_dose(self, recommend):
        rec = recommend("HPV", "2013-01-01", "2024-06-01")
        assert rec.recommendation_text == "Give HPV dose 1 now"
        assert rec.decision_type == DecisionType.ROUTINE
        assert rec.notes[0] == "2-dose schedule: Dose 1, then Dose 2 at least 5 months later"

    def test_late_start_uses_three_doses(self, recommend):
        rec = recommend("HPV", "2008-01-01", "2024-06-01")
        assert rec.decision_type == DecisionType.CATCH_UP
        assert rec.notes[0].startswith("3-dose schedule")

    def test_second_dose_waits_five_months(self, recommend):
        rec = recommend(
            "HPV", "2012-01-01", "2023-08-01",
            history={"Gardasil 9": ["2023-06-01"]},
        )
        assert rec.recommendation_text == "Give HPV dose 2 on or after 2023-10-29 (final dose)"

    def test_short_interval_needs_third_dose(self, recommend):
        rec = recommend(
            "HPV", "2010-01-01", "2022-07-01",
            history={"HPV": ["2022-03-01", "2022-06-01"]},
        )
        assert rec.recommendation_text == "Give HPV dose 3 on or after 2022-08-24 (final dose)"
        assert rec.series_complete is False

    def test_two_doses_five_months_apart_complete(self, recommend):
        rec = recommend(
            "HPV", "2010-01-01", "2022-09-01",
            history={"HPV": ["2022-03-01", "2022-08-01"]},
        )
        assert rec.series_complete is True
        assert rec.recommendation_text == "HPV series complete"

    def test_immunocompromised_always_three_doses(self, recommend):
        rec = recommend(
            "HPV", "2010-01-01", "2022-09-01",
            history={"HPV": ["2022-03-01", "2022-08-01"]},
            conditions={"immunocompromised": True},
        )
        assert rec.recommendation_text == "Give HPV dose 3 on or after 2022-10-24 (final dose)"
        assert rec.notes[0] == "Immunocompromised: 3-dose series regardless of age at initiation"

    def test_adult_shared_decision(self, recommend):
        rec = recommend("HPV", "1994-01-01", "2024-06-01")
        assert rec.decision_type == DecisionType.SHARED_CLINICAL_DECISION
        assert rec.series_complete is False
        assert rec.recommendation_text == (
            "Not routinely recommended after 26 years; discuss shared decision"
        )


# =============================================================================
# Tests: MenACWY
# =============================================================================

class TestMenACWY:
    """Test MenACWY routine dose, booster and college catch-up."""

    def test_healthy_young_child(self, recommend):
        rec = recommend("MenACWY", "2019-01-01", "2024-06-01")
        assert rec.recommendation_text == (
            "MenACWY not routinely recommended for healthy children 2-10 years"
        )
        assert rec.decision_type == DecisionType.NOT_RECOMMENDED

    def test_routine_first_dose(self, recommend):
        rec = recommend("MenACWY", "2013-01-01", "2024-06-01")
        assert rec.recommendation_text == "Give MenACWY dose 1 now (routine)"
        assert rec.decision_type == DecisionType.ROUTINE
        assert "Booster dose needed at 16 years" in rec.notes

    def test_missed_first_dose(self, recommend):
        rec = recommend("MenACWY", "2010-01-01", "2024-06-01")
        assert rec.recommendation_text == "Give MenACWY dose 1 now (catch-up)"
        assert rec.decision_type == DecisionType.CATCH_UP

    def test_booster_waits_for_sixteenth_birthday(self, recommend):
        rec = recommend(
            "MenACWY", "2010-01-01", "2024-06-01",
            history={"Menveo": ["2021-06-01"]},
        )
        assert rec.recommendation_text == "Give MenACWY booster dose on or after 2026-01-01"
        assert rec.next_dose_date == date(2026, 1, 1)

    def test_booster_due(self, recommend):
        rec = recommend(
            "MenACWY", "2007-01-01", "2024-03-01",
            history={"MenACWY": ["2019-03-01"]},
        )
        assert rec.recommendation_text == "Give MenACWY booster dose now"
        assert rec.decision_type == DecisionType.ROUTINE

    def test_single_dose_at_sixteen(self, recommend):
        rec = recommend(
            "MenACWY", "2007-01-01", "2024-03-01",
            history={"MenACWY": ["2023-06-01"]},
        )
        assert rec.series_complete is True
        assert "Single dose sufficient when given at age 16 or older" in rec.notes

    def test_college_catch_up(self, recommend):
        rec = recommend(
            "MenACWY", "2004-01-01", "2024-03-01",
            history={"MenACWY": ["2016-03-01"]},
        )
        assert rec.recommendation_text == (
            "Give 1 dose MenACWY now (age 19-21 without a dose at age 16 or older)"
        )
        assert rec.decision_type == DecisionType.CATCH_UP

    def test_healthy_adult(self, recommend):
        rec = recommend("MenACWY", "1999-01-01", "2024-03-01")
        assert rec.series_complete is True
        assert rec.decision_type == DecisionType.NOT_RECOMMENDED

    def test_high_risk_child(self, recommend):
        rec = recommend("MenACWY", "2019-01-01", "2024-06-01", conditions={"asplenia": True})
        assert rec.recommendation_text == "Give MenACWY dose 1 now (high-risk)"
        assert rec.decision_type == DecisionType.RISK_BASED
        assert rec.notes[-1].startswith("For persistent risk")
        assert rec.special_situations == ["2-dose primary + boosters every 5 years"]

    def test_high_risk_infant(self, recommend):
        rec = recommend("MenACWY", "2024-01-01", "2024-06-01", conditions={"asplenia": True})
        assert rec.recommendation_text == (
            "MenACWY recommended for high-risk conditions - consult provider"
        )
        assert rec.series_complete is False

    def test_travel_and_outbreak_notes(self, recommend):
        rec = recommend("MenACWY", "2013-01-01", "2024-06-01")
        assert "May be recommended for travel to endemic areas" in rec.notes
        assert "Additional doses may be needed during outbreaks" in rec.notes


# =============================================================================
# Tests: MenB
# =============================================================================

class TestMenB:
    """Test MenB shared decision-making and product schedules."""

    def test_under_ten(self, recommend):
        rec = recommend("MenB", "2016-01-01", "2024-06-01")
        assert rec.recommendation_text == "MenB vaccination not recommended for children under 10 years"

    def test_healthy_preteen(self, recommend):
        rec = recommend("MenB", "2012-01-01", "2024-06-01")
        assert rec.decision_type == DecisionType.NOT_RECOMMENDED
        assert "10-15 years" in rec.recommendation_text

    def test_shared_decision_first_dose(self, recommend):
        rec = recommend("MenB", "2007-01-01", "2024-06-01")
        assert rec.recommendation_text == "Give MenB dose 1 now (shared clinical decision-making)"
        assert rec.decision_type == DecisionType.SHARED_CLINICAL_DECISION
        assert rec.notes[0] == "MenB vaccination based on shared clinical decision-making"

    def test_bexsero_second_dose(self, recommend):
        rec = recommend(
            "MenB", "2007-01-01", "2024-03-15",
            history={"MenB": [("2024-03-01", "Bexsero")]},
        )
        assert rec.recommendation_text == (
            "Give MenB dose 2 on or after 2024-03-29 (shared clinical decision-making)"
        )
        assert "Use Bexsero to complete the series" in rec.notes

    def test_bexsero_complete(self, recommend):
        rec = recommend(
            "MenB", "2007-01-01", "2024-06-01",
            history={"MenB": [("2024-03-01", "Bexsero"), ("2024-04-01", "Bexsero")]},
        )
        assert rec.series_complete is True
        assert "Bexsero 2-dose series completed" in rec.notes

    def test_high_risk_preteen(self, recommend):
        rec = recommend("MenB", "2012-01-01", "2024-06-01", conditions={"asplenia": True})
        assert rec.recommendation_text == "Give MenB dose 1 now"
        assert rec.decision_type == DecisionType.RISK_BASED
        assert "High-risk conditions: asplenia, complement deficiency" in rec.notes

    def test_over_twenty_three(self, recommend):
        rec = recommend("MenB", "1998-01-01", "2024-06-01")
        assert rec.recommendation_text == "MenB vaccination not routinely recommended after 23 years"

    def test_high_risk_trumenba_second_dose_counts(self, recommend):
        """High-risk Trumenba doses 1 and 2 may be 1-2 months apart."""
        rec = recommend(
            "MenB", "2013-01-01", "2025-03-10",
            history={"MenB": [("2025-01-01", "Trumenba"), ("2025-02-15", "Trumenba")]},
            conditions={"asplenia": True},
        )
        assert rec.recommendation_text == "Give MenB dose 3 on or after 2025-07-20"
        assert rec.decision_type == DecisionType.RISK_BASED
        assert not any("too early" in note for note in rec.notes)

"""
Unit tests for name, address and result normalizers
"""

import pytest
from ingestion.normalizers import (
    format_display_address,
    format_display_name,
    is_closure,
    is_passing,
    normalize_address,
    normalize_facility_name,
    normalize_inspection_result,
    normalize_inspection_type,
)
from models.base import InspectionResult, InspectionType


class TestAddressNormalization:
    """Identity-key form of street addresses"""

    def test_street_type_and_suite(self):
        assert normalize_address("100 Main Street, Suite 4") == "100 MAIN ST STE 4"

    def test_directions_and_whitespace(self):
        assert normalize_address("  2200   North  Lamar Boulevard ") == "2200 N LAMAR BLVD"

    def test_punctuation_removed(self):
        assert normalize_address("12 Oak Dr. #5") == "12 OAK DR 5"

    def test_unit_number_spacing(self):
        assert normalize_address("400 Elm Road Apt5") == "400 ELM RD APT 5"

    def test_words_containing_abbreviations_untouched(self):
        assert normalize_address("9 Aptos Westover Street") == "9 APTOS WESTOVER ST"

    def test_equivalent_spellings_share_a_key(self):
        assert normalize_address("500 West Avenue") == normalize_address("500 W. AVE")

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty(self, value):
        assert normalize_address(value) == ""


class TestNameNormalization:
    """Identity-key form of facility names"""

    def test_leading_the_and_generic_suffix(self):
        assert normalize_facility_name("The Oaks Swimming Pool") == "OAKS"

    def test_spa_suffix(self):
        assert normalize_facility_name("Hilton Garden Inn Spa") == "HILTON GARDEN INN"

    def test_corporate_suffix(self):
        assert normalize_facility_name("Acme Pools, L.L.C.") == "ACME POOLS, LLC"

    def test_quotes_removed(self):
        assert normalize_facility_name("Bob's \"Fun\" Club") == "BOBS FUN CLUB"

    def test_suffix_inside_word_untouched(self):
        assert normalize_facility_name("Cobalt Condos") == "COBALT CONDOS"

    def test_case_and_spacing_insensitive(self):
        assert normalize_facility_name("oak  hill pool") == normalize_facility_name("OAK HILL POOL")


class TestDisplayFormatting:
    """Cosmetic formatting never used for identity"""

    def test_display_name(self):
        assert format_display_name("OAK HILL HOA POOL") == "Oak Hill HOA Pool"
        assert format_display_name("MCDONALD YMCA") == "McDonald YMCA"

    def test_display_address(self):
        assert format_display_address("100 MAIN ST", "AUSTIN", "tx", "78701") == "100 Main St, Austin, TX 78701"

    def test_display_address_without_city(self):
        assert format_display_address("100 MAIN ST") == "100 Main St"


class TestInspectionResult:
    """Controlled vocabulary for inspection outcomes"""

    @pytest.mark.parametrize("raw", ["PASSED", "Satisfactory", "IN COMPLIANCE", "pass", "Pass - Grade A"])
    def test_passing_texts(self, raw):
        assert normalize_inspection_result(raw) == InspectionResult.PASS

    @pytest.mark.parametrize("raw", ["Unsatisfactory", "NOT IN COMPLIANCE", "Fail - Critical Violations"])
    def test_failing_texts(self, raw):
        assert normalize_inspection_result(raw) == InspectionResult.FAIL

    @pytest.mark.parametrize("raw", ["Not Compliant", "Not Approved", "Not Satisfactory", "Did Not Pass", "Didn't pass", "Non-Satisfactory"])
    def test_negated_passing_texts_fail(self, raw):
        result = normalize_inspection_result(raw)

        assert result == InspectionResult.FAIL
        assert is_passing(result) is False

    @pytest.mark.parametrize("raw", ["No Violation", "Not Closed"])
    def test_other_negated_texts_are_other(self, raw):
        assert normalize_inspection_result(raw) == InspectionResult.OTHER

    def test_closed_for_inspection(self):
        result = normalize_inspection_result("Closed for Inspection")

        assert result == InspectionResult.CLOSED
        assert is_closure(result, "Closed for Inspection") is True
        assert is_passing(result) is False

    def test_violations_found_is_other(self):
        """Plural 'violations' must not match the VIOLATION keyword"""
        result = normalize_inspection_result("Violations Found")

        assert result == InspectionResult.OTHER
        assert is_passing(result) is None

    def test_conditional(self):
        assert normalize_inspection_result("Conditional - Grade C") == InspectionResult.CONDITIONAL_PASS
        assert is_passing(InspectionResult.CONDITIONAL_PASS) is True

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_is_none(self, raw):
        assert normalize_inspection_result(raw) is None

    def test_unknown_text_is_other(self):
        assert normalize_inspection_result("Inspected") == InspectionResult.OTHER

    def test_closure_from_raw_text_only(self):
        assert is_closure(InspectionResult.OTHER, "Pool closure ordered") is True
        assert is_closure(InspectionResult.PASS, None) is False


class TestInspectionType:
    """Controlled vocabulary for inspection purpose"""

    @pytest.mark.parametrize("raw,expected", [
        ("Routine", InspectionType.ROUTINE),
        ("Follow-Up", InspectionType.FOLLOW_UP),
        ("Re-Inspection", InspectionType.REINSPECTION),
        ("Complaint Investigation", InspectionType.COMPLAINT),
        ("Pre-Opening", InspectionType.OPENING),
        ("Seasonal Pool Inspection", InspectionType.OTHER),
    ])
    def test_types(self, raw, expected):
        assert normalize_inspection_type(raw) == expected

    def test_empty_is_none(self):
        assert normalize_inspection_type(None) is None

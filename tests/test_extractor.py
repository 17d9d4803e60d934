"""Test attribute extraction over aggregated sources."""

import pytest

from extractor import (
    extract_boolean,
    extract_channels,
    extract_fov,
    extract_frame_rate,
    extract_included_storage,
    extract_max_storage,
    extract_model_number,
    extract_operating_temperature,
    extract_power_source,
    extract_resolution,
    extract_screen_size,
    extract_screen_type,
    extract_specifications,
    extract_wifi_frequency,
    infer_brand,
    is_error_page,
)
from models import SPEC_GROUPS, RawProduct
from sources import aggregate_sources


def _sources(make_product, **overrides):
    return aggregate_sources(make_product(**overrides))


class TestScalarExtraction:
    """Test pattern-matched scalar attributes."""

    def test_resolution_from_title(self, redtiger):
        """4K in the title wins with title-weighted confidence."""
        spec = extract_resolution(aggregate_sources(redtiger))
        assert spec.value == "4K"
        assert spec.source == "model"
        assert spec.confidence == pytest.approx(0.9 * 2 / 3)
        assert spec.pattern

    def test_title_beats_description(self, make_product):
        """When title and description both match, the title result is returned."""
        sources = _sources(make_product, model="Acme 1080p Dash Cam", description="Records in stunning 4K")
        spec = extract_resolution(sources)
        assert spec.value == "1080p"
        assert spec.source == "model"

    def test_description_match_has_zero_weight(self, make_product):
        """Description is the least trusted source (priority 0)."""
        spec = extract_resolution(_sources(make_product, description="Records in 4K"))
        assert spec.value == "4K"
        assert spec.source == "description"
        assert spec.confidence == 0.0

    def test_structured_values_are_searched(self, make_product):
        """Vendor mapping values are plain text to the scalar extractors."""
        spec = extract_max_storage(_sources(make_product, structuredSpecs={"Memory": "Supports up to 1TB card"}))
        assert spec.value == 1024
        assert spec.source == "structuredSpecs"
        assert spec.confidence == pytest.approx(0.9)

    def test_default_when_nothing_matches(self, make_product):
        """Missing fps falls back to a low-confidence default."""
        spec = extract_frame_rate(_sources(make_product))
        assert spec.value == 30
        assert spec.source == "default"
        assert spec.confidence <= 0.5

    @pytest.mark.parametrize(
        "extract",
        [extract_screen_size, extract_wifi_frequency, extract_included_storage,
         extract_model_number, extract_operating_temperature],
    )
    def test_null_when_no_default(self, make_product, extract):
        """Attributes without a sensible default come back as None."""
        assert extract(_sources(make_product, model="Acme Camera")) is None

    def test_out_of_range_fps_is_skipped(self, make_product):
        """A 300fps hit is rejected and the next occurrence is used."""
        assert extract_frame_rate(_sources(make_product, model="Acme 300fps burst, 60fps video")).value == 60
        assert extract_frame_rate(_sources(make_product, model="Acme 300fps burst")).source == "default"

    def test_out_of_range_fov_falls_through_to_next_source(self, make_product):
        sources = _sources(make_product, model="Acme 400 degree cam", features=["Wide 150 degrees lens"])
        spec = extract_fov(sources)
        assert spec.value == 150
        assert spec.source == "features"

    def test_out_of_range_screen_size(self, make_product):
        assert extract_screen_size(_sources(make_product, model="Acme mount for 20 inch tablets")) is None

    def test_screen_size_with_quote_mark(self, redtiger):
        assert extract_screen_size(aggregate_sources(redtiger)).value == 3.16

    def test_screen_type(self, redtiger, make_product):
        assert extract_screen_type(aggregate_sources(redtiger)).value == "IPS"
        assert extract_screen_type(_sources(make_product)).value == "LCD"

    def test_fov_with_degree_sign(self, redtiger):
        assert extract_fov(aggregate_sources(redtiger)).value == 170

    def test_fov_with_mis_decoded_degree_sign(self, make_product):
        assert extract_fov(_sources(make_product, model="Acme 170Â°Wide Angle")).value == 170

    @pytest.mark.parametrize(
        "title, expected",
        [
            ("Acme Front Rear Dash Cam", 2),
            ("Acme 3 Channel Dash Cam", 3),
            ("Acme cam for front, rear and interior", 3),
            ("Acme Dual Dash Cam", 2),
            ("Acme Dash Cam", 1),
        ],
    )
    def test_channels(self, make_product, title, expected):
        assert extract_channels(_sources(make_product, model=title)).value == expected

    def test_included_storage(self, redtiger):
        assert extract_included_storage(aggregate_sources(redtiger)).value == 32

    def test_wifi_frequency(self, make_product):
        assert extract_wifi_frequency(_sources(make_product, model="Acme 5GHz Wi-Fi cam")).value == "5GHz"
        assert extract_wifi_frequency(_sources(make_product, model="Acme Dual-Band WiFi")).value == "Dual Band"

    def test_model_number_at_end_of_title(self, make_product):
        spec = extract_model_number(_sources(make_product, model="Garmin Dash Cam 67W 010-02505-00"))
        assert spec.value == "010-02505-00"
        assert spec.confidence == pytest.approx(0.7 * 2 / 3)

    def test_operating_temperature(self, make_product):
        sources = _sources(make_product, description="Operating temperature: -20°C to 70°C")
        assert extract_operating_temperature(sources).value == "-20°C to 70°C"

    def test_power_source_prefers_capacitor_over_battery(self, make_product):
        sources = _sources(make_product, model="Acme cam with supercapacitor instead of a battery")
        assert extract_power_source(sources).value == "Capacitor"

    def test_power_source_default(self, make_product):
        spec = extract_power_source(_sources(make_product))
        assert (spec.value, spec.source) == ("Car Charger", "default")


class TestBooleanExtraction:
    """Test presence flags."""

    def test_text_match(self, redtiger):
        spec = extract_boolean(aggregate_sources(redtiger), "gps")
        assert spec.value is True
        assert spec.source == "model"
        assert spec.confidence == pytest.approx(0.8 * 2 / 3)

    def test_later_source_match(self, redtiger):
        """HDR only appears in the bullets."""
        spec = extract_boolean(aggregate_sources(redtiger), "hdr")
        assert spec.value is True
        assert spec.source == "features"

    def test_default_false(self, make_product):
        spec = extract_boolean(_sources(make_product), "bluetooth")
        assert spec.value is False
        assert spec.source == "default"
        assert spec.confidence == 0.5

    def test_structured_string_key(self, make_product):
        """A "Night Vision": "Yes" vendor entry names the nightVision flag."""
        spec = extract_boolean(_sources(make_product, structuredSpecs={"Night Vision": "Yes"}), "nightVision")
        assert spec.value is True
        assert spec.source == "structuredSpecs"
        assert spec.confidence == pytest.approx(0.85)

    def test_structured_value_text_precedes_description(self, make_product):
        """Vendor values are searched as text in their slot of the source order."""
        sources = _sources(
            make_product,
            structuredSpecs={"Sensor": "Starlight low light sensor"},
            description="Excellent night vision",
        )
        spec = extract_boolean(sources, "nightVision")
        assert spec.source == "structuredSpecs"
        assert spec.confidence == pytest.approx(0.8)
        assert spec.pattern != "structured"

    def test_structured_string_false(self, make_product):
        spec = extract_boolean(_sources(make_product, structuredSpecs={"GPS": "No"}), "gps")
        assert spec.value is False
        assert spec.source == "structuredSpecs"

    def test_structured_bool_passthrough(self, make_product):
        spec = extract_boolean(_sources(make_product, structuredSpecs={"wifi_enabled": True}), "wifi")
        assert spec.value is True
        assert spec.confidence == pytest.approx(0.9)

    def test_hd_does_not_imply_hdr(self, make_product):
        assert extract_boolean(_sources(make_product, model="Acme HD Dash Cam"), "hdr").value is False


class TestExtractSpecifications:
    """Test the whole-listing entry point."""

    def test_all_groups_and_attributes_present(self, redtiger):
        specs = extract_specifications(redtiger)
        assert {group: tuple(attrs) for group, attrs in specs.items()} == SPEC_GROUPS

    def test_confidence_bounds(self, raw_products):
        """Every extracted field carries a confidence in [0, 1]."""
        for raw in raw_products:
            specs = extract_specifications(RawProduct.model_validate(raw))
            if specs is None:
                continue
            for group in specs.values():
                for spec in group.values():
                    if spec is not None:
                        assert 0.0 <= spec.confidence <= 1.0

    def test_defaults_are_low_confidence(self, make_product):
        specs = extract_specifications(make_product(model="Acme"))
        for group in specs.values():
            for spec in group.values():
                if spec is not None and spec.source == "default":
                    assert spec.confidence <= 0.5

    def test_error_page_rejected(self, make_product):
        assert extract_specifications(make_product(model="Page Not Found")) is None

    @pytest.mark.parametrize(
        "title, expected",
        [
            ("Page Not Found", True),
            ("Sorry! Something went wrong - ERROR", True),
            ("This item is not available", True),
            ("The page you requested does not exist", True),
            ("REDTIGER F7NP Dash Cam", False),
            ("", False),
        ],
    )
    def test_is_error_page(self, title, expected):
        assert is_error_page(title) is expected


class TestInferBrand:
    """Test brand inference from titles."""

    def test_known_brand_anywhere_in_title(self):
        assert infer_brand("New 2024 viofo A119 Mini 2 Dash Cam") == "VIOFO"

    def test_first_word_fallback(self):
        assert infer_brand("Zetacam Z1 Dash Camera") == "Zetacam"

    def test_known_brand_must_be_whole_word(self):
        """"Rove" must not match inside "Improved"."""
        assert infer_brand("Improved Dash Cam Mount") == "Improved"

    def test_empty_title(self):
        assert infer_brand("") == ""

"""Test the per-listing processing pipeline."""

from datetime import datetime

import pytest

from models import NormalizedProduct, RawProduct
from processor import BatchReport, extract_clean_model_name, process_product, process_products


class TestEndToEnd:
    """Test the REDTIGER F7NP listing through the whole pipeline."""

    @pytest.fixture
    def processed(self, redtiger_raw):
        return process_product(redtiger_raw)

    def test_returns_normalized_product(self, processed):
        assert isinstance(processed, NormalizedProduct)

    def test_headline_specs(self, processed):
        specs = processed.specs
        assert specs.video.resolution == "4K"
        assert specs.physical.fov == 170
        assert specs.physical.screen_size == 3.2
        assert specs.connectivity.wifi is True
        assert specs.connectivity.gps is True
        assert specs.video.night_vision is True
        assert specs.features.parking_mode is True

    def test_secondary_specs(self, processed):
        specs = processed.specs
        assert specs.physical.channels == 2
        assert specs.physical.screen_type == "IPS"
        assert specs.storage.included_storage == 32
        assert specs.storage.memory_card_included is True
        assert specs.features.loop_recording is True
        assert specs.features.emergency_recording is True
        assert specs.features.time_lapse is True

    def test_flags_are_strict_booleans(self, processed):
        for group in (processed.specs.video, processed.specs.connectivity, processed.specs.features):
            for name, value in group.model_dump().items():
                if name in ("resolution", "fps", "wifi_frequency"):
                    continue
                assert isinstance(value, bool), name

    def test_clean_model_name(self, processed):
        assert processed.clean_model_name == "F7NP Front"

    def test_raw_fields_preserved(self, processed, redtiger_raw):
        assert processed.id == 1234
        assert processed.review_count == redtiger_raw["reviewCount"]
        assert processed.price == {"amazon_com": 119.99}

    def test_metadata(self, processed):
        """Provenance is recorded per attribute with a UTC timestamp."""
        meta = processed.extraction_metadata
        assert datetime.fromisoformat(meta.processing_timestamp).tzinfo is not None
        resolution = meta.sources_used["video"]["resolution"]
        assert resolution.source == "model"
        assert 0 < resolution.confidence <= 1
        assert meta.sources_used["video"]["fps"].source == "default"
        # Null values leave no provenance
        assert "modelNumber" not in meta.sources_used["additional"]

    def test_camel_case_document(self, processed):
        doc = processed.model_dump(by_alias=True)
        assert doc["cleanModelName"] == "F7NP Front"
        assert doc["specs"]["video"]["nightVision"] is True
        assert doc["specs"]["physical"]["fov"] == 170
        assert "processingTimestamp" in doc["extractionMetadata"]

    def test_reprocessing_replaces_specs(self, processed):
        """A processed document run again yields the same specs."""
        again = process_product(processed.model_dump(by_alias=True))
        assert again.specs == processed.specs
        assert again.clean_model_name == processed.clean_model_name


class TestFailureModes:
    def test_error_page_returns_none(self, make_product):
        assert process_product(make_product(model="Page Not Found")) is None

    def test_malformed_record_returned_unchanged(self, caplog):
        """A record that fails validation comes back as-is and is logged."""
        bad = {"id": 7, "model": "Acme", "price": "not-a-mapping"}
        with caplog.at_level("ERROR"):
            assert process_product(bad) is bad
        assert "Failed to process product 7" in caplog.text

    def test_unexpected_error_is_fail_soft(self, make_product, monkeypatch):
        def boom(specs):
            raise RuntimeError("normalizer exploded")

        monkeypatch.setattr("processor.normalize_specs", boom)
        product = make_product()
        assert process_product(product) is product

    @pytest.mark.parametrize("record", ["not a product", ["junk"], 42, None])
    def test_non_mapping_record_returned_unchanged(self, record, caplog):
        with caplog.at_level("ERROR"):
            assert process_product(record) is record
        assert "Failed to process product None" in caplog.text

    def test_brand_inferred_when_missing(self, make_product):
        result = process_product(make_product(brand="", model="Vantrue N4 3 Channel Dash Cam"))
        assert result.brand == "Vantrue"
        assert result.clean_model_name == "N4 3"
        assert result.specs.physical.channels == 3


class TestCleanModelName:
    @pytest.mark.parametrize(
        "brand, model, expected",
        [
            ("REDTIGER", "REDTIGER F7NP Front Rear, 4K", "F7NP Front"),
            ("Garmin", "garmin Dash Cam 67W", "Dash Cam"),
            ("VIOFO", "A129-Pro Duo", "A129-Pro"),
            ("Acme", "", ""),
            ("Acme", "Acme ®", "®"),
        ],
    )
    def test_derivation(self, brand, model, expected):
        assert extract_clean_model_name(brand, model) == expected


class TestProcessProducts:
    def test_batch_over_seed_file(self, raw_products):
        """Error pages are dropped; everything else is processed."""
        report = BatchReport()
        results = process_products(raw_products, report)
        assert len(results) == len(raw_products) - 1
        assert all(isinstance(r, NormalizedProduct) for r in results)
        assert report.processed == len(results)
        assert report.rejected == ["4410"]
        assert report.failed == []

    def test_failures_kept_in_batch(self, redtiger_raw):
        bad = {"id": 9, "model": "Acme", "rating": "five"}
        report = BatchReport()
        results = process_products([redtiger_raw, bad], report)
        assert results[1] is bad
        assert report.failed == ["9"]

    def test_non_mapping_record_does_not_abort_batch(self, redtiger_raw):
        junk = ["junk"]
        report = BatchReport()
        results = process_products([junk, redtiger_raw], report)
        assert results[0] is junk
        assert isinstance(results[1], NormalizedProduct)
        assert report.failed == ["None"]
        assert report.processed == 1

    def test_accepts_models_and_dicts(self, redtiger, redtiger_raw):
        results = process_products([redtiger, redtiger_raw])
        assert results[0].specs == results[1].specs

    def test_input_not_mutated(self, redtiger):
        before = redtiger.model_dump()
        process_products([redtiger])
        assert redtiger.model_dump() == before
        assert isinstance(redtiger, RawProduct)

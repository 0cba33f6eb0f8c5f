"""
Unit tests for gap detection, the heuristic fallbacks and the validators.
"""

import pytest

from product_optimizer.core.exceptions import ValidationException
from product_optimizer.models import Platform, SpecEntry, TaskKind
from product_optimizer.processing import (
    TASK_HANDLERS,
    classify_gap_score,
    detect_gaps,
    get_expected_attributes,
    get_task_handler,
    heuristic_bullets,
    heuristic_long_tail,
    heuristic_meta,
)
from product_optimizer.processing.validators import (
    to_wire,
    validate_long_tail,
    validate_meta,
)


class TestGapDetection:
    def test_record_without_specs(self, make_record):
        result = detect_gaps(make_record())

        assert [gap.key for gap in result.gaps] == [
            "material",
            "dimensions",
            "weight",
            "color",
            "size",
            "brand",
        ]
        assert result.gap_score == 12
        assert result.classification == "severe"

    def test_present_keys_are_case_and_space_insensitive(self, make_record):
        record = make_record(
            specs=[
                SpecEntry(key="MATERIAL", value="Plastic"),
                SpecEntry(key="dimensions", value="10 x 6 cm"),
                SpecEntry(key="  Weight ", value="90 g"),
            ]
        )

        result = detect_gaps(record)

        assert [gap.key for gap in result.gaps] == ["color", "size", "brand"]
        assert result.gap_score == 6
        assert result.classification == "moderate"

    def test_gap_shape(self, make_record):
        gap = detect_gaps(make_record()).gaps[0]

        assert gap.severity == "medium"
        assert gap.suggestion == "Add material for completeness"

    def test_platform_attributes_extend_generic_list(self):
        amazon = get_expected_attributes(Platform.AMAZON)
        shopify = get_expected_attributes("shopify")

        assert amazon[:6] == get_expected_attributes()
        assert amazon[6:] == ["asin", "item model number"]
        assert shopify[6:] == ["sku", "vendor"]

    def test_unknown_platform_is_generic(self):
        assert get_expected_attributes("bigcommerce") == get_expected_attributes(None)

    def test_platform_record_has_more_gaps(self, make_record):
        result = detect_gaps(make_record(platform=Platform.EBAY))

        assert len(result.gaps) == 8
        assert result.gap_score == 16

    @pytest.mark.parametrize(
        "score,expected",
        [(0, "none"), (2, "mild"), (4, "mild"), (6, "moderate"), (8, "moderate"), (10, "severe")],
    )
    def test_classification_bands(self, score, expected):
        assert classify_gap_score(score) == expected


class TestLongTailHeuristic:
    def test_phrases_and_scores(self, make_record):
        suggestions = heuristic_long_tail(make_record(title="Wireless Mouse"))

        assert [s.phrase for s in suggestions] == [
            "buy wireless mouse",
            "best wireless mouse",
            "affordable wireless mouse",
            "discount wireless mouse",
            "for sale wireless mouse",
        ]
        assert [s.score for s in suggestions] == [0.40, 0.45, 0.5, 0.55, 0.6]

    def test_only_first_four_significant_words(self, make_record):
        suggestions = heuristic_long_tail(
            make_record(title="The Big Blue Ceramic Coffee Mug Set For Home")
        )

        assert suggestions[0].phrase == "buy blue ceramic coffee home"

    def test_deterministic(self, sample_record):
        assert heuristic_long_tail(sample_record) == heuristic_long_tail(sample_record)


class TestMetaHeuristic:
    def test_title_fits_with_suffix(self, make_record):
        meta = heuristic_meta(make_record(title="Extra Long Product Title " * 5))

        assert len(meta.meta_title) <= 60
        assert meta.meta_title.endswith(" | Buy Online")
        assert meta.meta_title_length == len(meta.meta_title)

    def test_description_from_first_bullet(self, sample_record):
        meta = heuristic_meta(sample_record)

        assert meta.meta_title == "Ergonomic Wireless Mouse with Silent Clicks | Buy Online"
        assert meta.meta_description == "Silent clicks for quiet offices. Fast shipping."

    def test_description_from_text_when_no_bullets(self, make_record):
        text = "Long description sentence. " * 10
        meta = heuristic_meta(make_record(description={"text": text}))

        assert meta.meta_description.startswith("Long description sentence.")
        assert meta.meta_description.endswith("Fast shipping.")
        assert len(meta.meta_description) <= 150

    def test_bare_record(self, make_record):
        meta = heuristic_meta(make_record())

        assert meta.meta_description == "Fast shipping."


class TestBulletHeuristic:
    def test_trims_and_caps(self, make_record):
        record = make_record(
            bullets=["  Extra   spaces here. ", "", "x" * 200] + [f"Bullet {i}" for i in range(5)]
        )

        bullets = heuristic_bullets(record)

        assert [b.rewritten for b in bullets][:2] == ["Extra spaces here", "x" * 155]
        assert len(bullets) == 4
        assert bullets[0].original == "  Extra   spaces here. "
        assert bullets[1].length == 155

    def test_no_bullets(self, make_record):
        assert heuristic_bullets(make_record()) == []


class TestHeuristicValidatorParity:
    @pytest.mark.parametrize("kind", list(TaskKind))
    def test_heuristic_output_passes_validator(self, kind, sample_record, make_record):
        handler = TASK_HANDLERS[kind]
        for record in (sample_record, make_record(), make_record(title="X")):
            handler.validate(handler.heuristic(record))

    @pytest.mark.parametrize("kind", list(TaskKind))
    def test_wire_form_round_trips(self, kind, sample_record):
        handler = TASK_HANDLERS[kind]
        value = handler.validate(handler.heuristic(sample_record))

        assert handler.validate(to_wire(value)) == value

    def test_only_gaps_are_heuristic_only(self):
        assert [k for k, h in TASK_HANDLERS.items() if h.heuristic_only] == [TaskKind.GAPS]

    def test_unknown_kind_has_no_handler(self):
        assert get_task_handler("generate.poem") is None
        assert get_task_handler("generate.meta").kind == TaskKind.META


class TestValidators:
    def test_wire_keys_are_camel_case(self, sample_record):
        wire = to_wire(heuristic_meta(sample_record))

        assert set(wire) == {
            "metaTitle",
            "metaDescription",
            "metaTitleLength",
            "metaDescriptionLength",
        }

    def test_string_score_rejected(self):
        with pytest.raises(ValidationException):
            validate_long_tail([{"phrase": "a", "score": "0.5"}])

    def test_score_out_of_range_rejected(self):
        with pytest.raises(ValidationException):
            validate_long_tail([{"phrase": "a", "score": 1.5}])

    def test_meta_title_over_limit_rejected(self):
        with pytest.raises(ValidationException):
            validate_meta(
                {
                    "metaTitle": "t" * 61,
                    "metaDescription": "d",
                    "metaTitleLength": 61,
                    "metaDescriptionLength": 1,
                }
            )

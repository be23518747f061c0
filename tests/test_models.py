import pydantic
import pytest

from avalanche.models import (
    AvalancheForecast,
    Feature,
    RegionalDiscussion,
    SpecialProduct,
    parse_forecast_record,
)

from conftest import avalanche_forecast, make_feature, regional_discussion, special_product, square


def test_discriminator_selects_variant():
    assert isinstance(parse_forecast_record(avalanche_forecast("a", "x")), AvalancheForecast)
    assert isinstance(parse_forecast_record(regional_discussion("b", "x")), RegionalDiscussion)
    assert isinstance(parse_forecast_record(special_product("c", "x")), SpecialProduct)


def test_unknown_discriminator_rejected():
    with pytest.raises(pydantic.ValidationError):
        parse_forecast_record({"id": "z", "type": "newsletter", "areaId": "x"})


def test_camel_case_payload_fields():
    record = parse_forecast_record(avalanche_forecast(
        "a",
        "x",
        isTranslated=True,
        communication={"headline": "Heads up", "sms": "short"},
        media={"Images": [{"id": "img", "url": "https://example.test/i.jpg", "altText": "slide"}]},
        avalancheProblems={"days": [[{
            "type": "windSlab",
            "aspectElevations": ["n_alp"],
            "likelihood": "possible",
            "expectedSize": {"min": "1", "max": "2"},
        }]]},
        someFutureField=1,
    ))
    assert record.area_id == "x"
    assert record.is_translated
    assert record.communication.headline == "Heads up"
    assert record.media.images[0].alt_text == "slide"
    problem = record.avalanche_problems.days[0][0]
    assert problem.aspect_elevations == ["n_alp"]
    assert problem.comment is None


def test_records_are_immutable():
    record = parse_forecast_record(regional_discussion("b", "x"))
    with pytest.raises(pydantic.ValidationError):
        record.area_id = "y"


def test_feature_area_id_comes_from_properties():
    feature = Feature.model_validate(make_feature("vail-area", [[square(0, 0, 1, 1)]]))
    assert feature.area_id == "vail-area"
    assert feature.bbox == (0.0, 0.0, 1.0, 1.0)
    assert feature.geometry.coordinates[0][0][2] == [1.0, 1.0]

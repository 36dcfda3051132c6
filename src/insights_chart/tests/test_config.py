"""Tests for global options."""

import ibis
import pytest

from insights_chart import AnalysisChart, options, to_data_model


@pytest.fixture
def model():
    table = ibis.table({"region": "string", "amount": "float64"}, name="orders")
    return to_data_model(table).with_dimensions(region="region")


def test_defaults():
    assert options.refresh.debounce_ms == 500
    assert options.refresh.auto_refresh is True
    assert options.storage.namespace == "insights:analysis-chart:"
    assert options.storage.directory is None
    assert options.default_chart_type == "Bar"


def test_dotted_access():
    original = options.refresh.debounce_ms
    try:
        options.set("refresh.debounce_ms", 250)
        assert options.get("refresh.debounce_ms") == 250
        assert options.refresh.debounce_ms == 250
    finally:
        options.refresh.debounce_ms = original


def test_default_chart_type_applies_to_new_charts(model):
    original = options.default_chart_type
    try:
        options.default_chart_type = "Table"
        chart = AnalysisChart("sales", model, auto_refresh=False)
        assert chart.type == "Table"
    finally:
        options.default_chart_type = original


def test_auto_refresh_option(model):
    original = options.refresh.auto_refresh
    try:
        options.refresh.auto_refresh = False
        chart = AnalysisChart("sales", model)
        assert chart.auto_refresh is False
    finally:
        options.refresh.auto_refresh = original

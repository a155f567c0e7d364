import pytest

from backend.response_parser import (
    extract_fields,
    normalize_signal,
    normalize_trend,
    parse_analysis,
)
from conftest import EURUSD_REPLY


def test_well_formed_reply_parses_exactly():
    parsed = parse_analysis(EURUSD_REPLY)

    assert parsed.analysis.model_dump() == {
        "PAIR": "EUR/USD",
        "TIMEFRAME": "H1",
        "TREND": "Bullish",
        "SIGNAL": "UP",
    }
    assert parsed.fallback_fields == []
    assert parsed.has_valid_data


def test_signal_buy_strongly_normalizes_to_up():
    parsed = parse_analysis('PAIR: "BTC/USDT"\nSIGNAL: "buy strongly"')
    assert parsed.analysis.SIGNAL == "UP"


@pytest.mark.parametrize("raw, expected", [
    ("UP", "UP"),
    ("Buy", "UP"),
    ("bullish continuation", "UP"),
    ("DOWN", "DOWN"),
    ("strong sell", "DOWN"),
    ("Bearish", "DOWN"),
    ("wait", "NEUTRAL"),
    ("", "NEUTRAL"),
])
def test_normalize_signal(raw, expected):
    assert normalize_signal(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    ("Bullish", "Bullish"),
    ("uptrend", "Bullish"),
    ("Rising wedge", "Bullish"),
    ("bearish", "Bearish"),
    ("Downtrend", "Bearish"),
    ("falling", "Bearish"),
    ("Sideways", "Sideways"),
    ("ranging", "Sideways"),
])
def test_normalize_trend(raw, expected):
    assert normalize_trend(raw) == expected


def test_unparseable_line_only_affects_its_own_field():
    text = 'PAIR: "GBP/JPY"\nTIMEFRAME garbage without separator\nTREND: "Bearish"\nSIGNAL:'

    parsed = parse_analysis(text)

    assert parsed.analysis.PAIR == "GBP/JPY"
    assert parsed.analysis.TIMEFRAME == "Not visible"
    assert parsed.analysis.TREND == "Bearish"
    assert parsed.analysis.SIGNAL == "NEUTRAL"
    assert parsed.fallback_fields == ["TIMEFRAME", "SIGNAL"]


@pytest.mark.parametrize("text", [None, "", "   \n\n", "I could not read this chart.", ":::\n:"])
def test_garbage_never_raises(text):
    parsed = parse_analysis(text)

    assert parsed.analysis.model_dump() == {
        "PAIR": "Not visible",
        "TIMEFRAME": "Not visible",
        "TREND": "Sideways",
        "SIGNAL": "NEUTRAL",
    }
    assert not parsed.has_valid_data


def test_placeholder_values_use_fallbacks():
    parsed = parse_analysis('PAIR: "Unknown"\nTIMEFRAME: "not visible"\nTREND: "N/A"\nSIGNAL: "UP"')

    assert parsed.analysis.PAIR == "Not visible"
    assert parsed.analysis.TIMEFRAME == "Not visible"
    assert parsed.analysis.TREND == "Sideways"
    assert parsed.analysis.SIGNAL == "UP"


def test_splits_on_first_colon_only():
    fields = extract_fields('TIMEFRAME: "10:30"\nPAIR: USD/MXN (OTC)')
    assert fields == {"TIMEFRAME": "10:30", "PAIR": "USD/MXN (OTC)"}


def test_markdown_decorated_keys():
    text = '**PAIR:** "EUR/USD"\n- TIMEFRAME: M15\n## trend: bullish\n* SIGNAL: `DOWN`'
    fields = extract_fields(text)

    assert fields == {"PAIR": "EUR/USD", "TIMEFRAME": "M15", "TREND": "bullish", "SIGNAL": "DOWN"}


def test_first_occurrence_of_key_wins():
    fields = extract_fields('PAIR: "EUR/USD"\nPAIR: "BTC/USDT"')
    assert fields["PAIR"] == "EUR/USD"


def test_surrounding_prose_is_ignored():
    text = (
        "Here is my analysis of the chart:\n\n"
        'PAIR: "ETH/USDT"\n'
        'TIMEFRAME: "H4"\n'
        'TREND: "Sideways"\n'
        'SIGNAL: "DOWN"\n\n'
        "Note: this is not financial advice."
    )
    parsed = parse_analysis(text)

    assert parsed.analysis.model_dump() == {
        "PAIR": "ETH/USDT",
        "TIMEFRAME": "H4",
        "TREND": "Sideways",
        "SIGNAL": "DOWN",
    }
    assert parsed.fields["NOTE"] == "this is not financial advice."

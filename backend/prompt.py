"""
Prompt sent to the vision model with every chart.
The text can be replaced without code changes through ANALYSIS_PROMPT_FILE;
only the KEY: "value" answer format matters to the response parser.
"""

from pathlib import Path
from typing import Optional

from .errors import ConfigurationError

DEFAULT_PROMPT = """You are a professional trading chart analyst. Analyze this trading chart screenshot and extract the EXACT information visible in the image.

PAIR DETECTION:
- Search the chart header, title and any visible labels for the trading pair symbol
- Examples: "BTC/USDT", "EUR/USD", "USD/MXN (OTC)", "GBP/JPY"

TIMEFRAME DETECTION:
- Look for the selected timeframe button or label (M1, M5, M15, M30, H1, H4, D1, W1, MN)
- Check the chart toolbar and the x-axis labels

TREND ANALYSIS:
- Examine the most recent 5-10 candles and the overall price movement
- Consider visible moving averages, trend lines and candle colors
- Classify as Bullish, Bearish or Sideways

SIGNAL PREDICTION:
- Based on the current patterns and momentum, predict the direction of the next candle (UP or DOWN)

RESPONSE FORMAT:
Return ONLY these four lines:
PAIR: "[exact pair name from chart or 'Not visible']"
TIMEFRAME: "[exact timeframe from chart or 'Not visible']"
TREND: "[Bullish/Bearish/Sideways]"
SIGNAL: "[UP/DOWN]"

If you cannot see the pair or the timeframe, write "Not visible". Do not invent values.
"""


def load_prompt(path: Optional[str] = None) -> str:
    """Return the prompt override stored at ``path``, or the built-in prompt."""
    if not path:
        return DEFAULT_PROMPT

    prompt_path = Path(path)
    try:
        text = prompt_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise ConfigurationError(f"ANALYSIS_PROMPT_FILE could not be read: {e}") from e

    if not text:
        raise ConfigurationError(f"ANALYSIS_PROMPT_FILE is empty: {prompt_path}")
    return text

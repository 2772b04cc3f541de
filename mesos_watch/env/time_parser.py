import re

DURATION_PATTERN = re.compile(r"(?P<amount>\d+(?:\.\d+)?)\s*(?P<unit>ms|[smh])?", flags=re.I)

UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


class TimeParser:
    """Parses durations such as ``5s``, ``250ms`` or ``1m30s``. Bare numbers are seconds."""

    def parse(self, time_amount: str) -> float:
        return sum((
            float(match.group("amount"))
            * UNIT_SECONDS[(match.group("unit") or "s").lower()]
            for match in DURATION_PATTERN.finditer(time_amount)
        ), 0.0)

    def parse_ms(self, time_amount: str) -> int:
        return int(round(self.parse(time_amount) * 1000))

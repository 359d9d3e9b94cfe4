"""CLI output parsing.

The node CLI answers either with JSON (``--output json``) or with
line-oriented ``key: value`` text, and JSON answers are sometimes preceded
by a sentence of preamble (gas estimates, warnings). ``decoder_for`` sniffs
the output once and returns a decoder that knows how to pull fields,
balances and heights out of that shape.

Parsing never raises: a missing field is an empty string and a missing
height is ``-1``. Callers that need a value must check for those.
"""

import json
import math
import re
from decimal import Decimal
from typing import Any

INVALID_HEIGHT = -1

_DIGITS_RE = re.compile(r"[0-9]+")


def format_value(value: Any) -> str:
    """Render a decoded JSON scalar the way the CLI would print it.

    Strings pass through, bools become "true"/"false", floats use the
    shortest decimal form without an exponent, anything else is JSON.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    return json.dumps(value, separators=(",", ":"))


def _format_float(value: float) -> str:
    if not math.isfinite(value):
        return str(value)
    number = Decimal(repr(value))
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), "f")


class ResponseDecoder:
    """Base decoder; every lookup misses."""

    def field(self, name: str) -> str:
        return ""

    def balance(self, default_denom: str) -> str:
        return "0" + default_denom

    def rewards_total(self, default_denom: str) -> str:
        return "0" + default_denom

    def block_height(self) -> int:
        return INVALID_HEIGHT

    def event_attribute(self, event_type: str, key: str) -> str:
        return ""


class JsonDecoder(ResponseDecoder):
    """Decoder for a JSON object response."""

    def __init__(self, document: dict[str, Any]) -> None:
        self.document = document

    def field(self, name: str) -> str:
        """Look a field up where CLI responses usually put it.

        Searched in order: top level, ``params``, ``validator``, and for
        ``address`` the module account shape ``account.value.address``.
        The account lookup is deliberately limited to ``address``: other
        names never fall through to an account's nested address.
        """
        doc = self.document
        if name in doc:
            return format_value(doc[name])

        for container in ("params", "validator"):
            nested = doc.get(container)
            if isinstance(nested, dict) and name in nested:
                return format_value(nested[name])

        if name == "address":
            account = doc.get("account")
            if isinstance(account, dict):
                value = account.get("value")
                if isinstance(value, dict) and "address" in value:
                    return format_value(value["address"])

        return ""

    def balance(self, default_denom: str) -> str:
        """Return amount+denom from a delegation or balances response."""
        delegation = self.document.get("delegation_response")
        if isinstance(delegation, dict):
            coin = delegation.get("balance")
            if isinstance(coin, dict) and coin.get("amount"):
                return f"{coin['amount']}{coin.get('denom', '')}"

        balances = self.document.get("balances")
        if isinstance(balances, list) and balances and isinstance(balances[0], dict):
            coin = balances[0]
            return f"{coin.get('amount', '')}{coin.get('denom', '')}"

        return "0" + default_denom

    def rewards_total(self, default_denom: str) -> str:
        """Return the first distribution rewards total in whole units."""
        total = self.document.get("total")
        if isinstance(total, list) and total and isinstance(total[0], dict):
            coin = total[0]
            # DecCoin amounts are truncated
            amount = str(coin.get("amount", "")).split(".")[0]
            if amount:
                return f"{amount}{coin.get('denom', '')}"
        return "0" + default_denom

    def block_height(self) -> int:
        header = self.document.get("header")
        if not isinstance(header, dict):
            block = self.document.get("block")
            header = block.get("header") if isinstance(block, dict) else None
        if not isinstance(header, dict):
            return INVALID_HEIGHT
        return _parse_int64(header.get("height"))

    def event_attribute(self, event_type: str, key: str) -> str:
        """Find an attribute value in a transaction's events."""
        events = list(self.document.get("events") or [])
        for log in self.document.get("logs") or []:
            if isinstance(log, dict):
                events.extend(log.get("events") or [])

        for event in events:
            if not isinstance(event, dict) or event.get("type") != event_type:
                continue
            for attribute in event.get("attributes") or []:
                if isinstance(attribute, dict) and attribute.get("key") == key:
                    return format_value(attribute.get("value", ""))
        return ""


class TextDecoder(ResponseDecoder):
    """Decoder for line-oriented ``key: value`` output."""

    def __init__(self, text: str) -> None:
        self.lines = [line for line in text.splitlines() if line.strip()]

    def _values(self, name: str) -> list[str]:
        pattern = re.compile(rf"^\s*(?:-\s+)?{re.escape(name)}:\s*(.*)$")
        values = []
        for line in self.lines:
            match = pattern.match(line)
            if match:
                value = match.group(1).strip().strip("\"'")
                if value:
                    values.append(value)
        return values

    def field(self, name: str) -> str:
        values = self._values(name)
        return values[0] if values else ""

    def balance(self, default_denom: str) -> str:
        amount = self.field("amount")
        if not amount:
            return "0" + default_denom
        return amount + self.field("denom")

    def block_height(self) -> int:
        return _parse_int64(self.field("height"))


def _parse_int64(value: Any) -> int:
    # Plain ASCII digits only: no sign, whitespace or underscores
    if not isinstance(value, str) or not _DIGITS_RE.fullmatch(value):
        return INVALID_HEIGHT
    height = int(value)
    if height >= 2**63:
        return INVALID_HEIGHT
    return height


def decoder_for(output: str) -> ResponseDecoder:
    """Pick a decoder for raw command output.

    A leading ``{`` selects JSON. Otherwise a JSON object starting at the
    first ``{`` (after a preamble) still selects JSON, and anything else is
    treated as text.
    """
    stripped = output.lstrip()
    if not stripped:
        return ResponseDecoder()

    start = stripped.find("{")
    if start >= 0:
        try:
            document = json.loads(stripped[start:])
        except ValueError:
            document = None
        if isinstance(document, dict):
            return JsonDecoder(document)
        if start == 0:
            # Malformed JSON is a miss, not text
            return ResponseDecoder()

    return TextDecoder(output)


def parse_field(output: str, name: str) -> str:
    """Extract a named field, or "" if absent."""
    return decoder_for(output).field(name)


def parse_balance_amount(output: str, default_denom: str) -> str:
    """Extract a balance as amount+denom, e.g. "500000utac"."""
    return decoder_for(output).balance(default_denom)


def parse_rewards_total(output: str, default_denom: str) -> str:
    """Extract total distribution rewards as whole amount+denom."""
    return decoder_for(output).rewards_total(default_denom)


def parse_block_height(output: str) -> int:
    """Extract the block header height, or -1 if unknown."""
    return decoder_for(output).block_height()


def parse_event_attribute(output: str, event_type: str, key: str) -> str:
    """Extract an event attribute from a transaction query, or ""."""
    return decoder_for(output).event_attribute(event_type, key)

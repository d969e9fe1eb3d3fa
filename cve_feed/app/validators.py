"""식별자 문법 검증(Identifier grammar validators for CPE 2.3 and CVE IDs).

Both checks are pure recognizers: they never normalize or rewrite the input, and
they never raise. Callers run them before any request reaches the feed client.
"""
from __future__ import annotations

import re

# Characters that must be escaped with a backslash inside a CPE 2.3 attribute.
_CPE_SPECIAL = r"""[\\*?!"#$%&'()+,/:;<=>@\[\]^`{|}~]"""

# avstring: "*", "-", or a run of (escaped-special | alphanumeric | - . _)
# optionally led and trailed by "*" or a run of "?".
_CPE_AVSTRING = (
    r"(?:"
    r"(?:\?*|\*?)"
    r"(?:[a-zA-Z0-9\-._]|\\" + _CPE_SPECIAL + r")+"
    r"(?:\?*|\*?)"
    r"|[*\-]"
    r")"
)

# ISO-639 two/three letter code with an optional region, or "*" / "-".
_CPE_LANGUAGE = r"(?:[a-zA-Z]{2,3}(?:-(?:[a-zA-Z]{2}|[0-9]{3}))?|[*\-])"

CPE_23_PATTERN = re.compile(
    r"cpe:2\.3:[aho*\-]"
    r"(?::" + _CPE_AVSTRING + r"){5}"
    r":" + _CPE_LANGUAGE
    + r"(?::" + _CPE_AVSTRING + r"){4}"
)

# Anchored at the end only; leading text before the identifier is tolerated.
CVE_ID_PATTERN = re.compile(r"CVE-[0-9]{4}-[0-9]{4,7}\Z")


def is_valid_cpe_string(value: object) -> bool:
    """CPE 2.3 문자열 검증(Validate a CPE 2.3 formatted string).

    The whole string must match; an unescaped separator absorbed into a neighbouring
    field leaves the string one attribute short and is rejected.
    """
    if not isinstance(value, str):
        return False
    return CPE_23_PATTERN.fullmatch(value) is not None


def is_valid_cve_string(value: object) -> bool:
    """CVE ID 형식 검증(Validate CVE ID format: CVE-YYYY-NNNN..NNNNNNN)."""
    if not isinstance(value, str):
        return False
    return CVE_ID_PATTERN.search(value) is not None

"""
Query fingerprints: the shape of a query with its literals stripped, so
structurally identical queries group into one class.
"""

import hashlib
import re

from common.model.constants import ADMIN_COMMAND_PREFIX
from common.model.types import ClassId, Fingerprint
from common.parse.regexes import FINGERPRINT as RX


class FingerprintError(ValueError):
    """The query text is malformed and cannot be fingerprinted."""


def _replace_token(m: re.Match[str]) -> str:
    if m.group("ident") is not None:
        return m.group("ident")
    if m.group("str") is not None:
        return "?"
    if m.group("stray") is not None:
        raise FingerprintError(
            f"unterminated quoted literal at offset {m.start()}: {m.string[m.start():][:40]!r}"
        )
    # block or line comment
    return " "


def fingerprint(query: str) -> Fingerprint:
    """
    Canonical form of a query:

        SELECT * FROM t WHERE id IN (1, 2, 'x') LIMIT 10, 5;
        -> select * from t where id in(?+) limit ?

    Raises FingerprintError on an unterminated quoted literal.
    """
    s = query.strip()
    if s.startswith(ADMIN_COMMAND_PREFIX):
        return s

    s = RX.token.sub(_replace_token, s)
    s = RX.whitespace.sub(" ", s).strip().lower()

    m_call = RX.call.match(s)
    if m_call:
        return f"call {m_call.group('sp')}"
    if RX.use_db.match(s):
        return "use ?"

    s = RX.hex_literal.sub("?", s)
    s = RX.number.sub("?", s)
    s = RX.in_list.sub("in(?+)", s)
    s = RX.values_list.sub("values(?+) ", s)
    s = RX.limit.sub("limit ?", s)

    s = RX.whitespace.sub(" ", s).strip()
    return s.rstrip(";").rstrip()


def class_id(fp: Fingerprint) -> ClassId:
    """
    Stable 16 hex-digit class id: the upper half of the fingerprint's MD5.
    """
    digest = hashlib.md5(fp.encode("utf-8")).hexdigest()
    return digest[16:32].upper()

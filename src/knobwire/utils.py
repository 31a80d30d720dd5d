# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2026.
# SPDX-License-Identifier: LGPL-3.0-or-later

import string

TOKEN_CHARS = set(string.ascii_letters + string.digits + "-_")


def ensure(
    condition: bool,
    exctype: type[Exception] = ValueError,
    msg: str | None = None,
) -> None:
    if not condition:
        msg = "Constraint violation: " + msg if msg else "Constraint violation"

        raise exctype(msg)


def valid_token(x: str) -> bool:
    """True for a non-empty topic segment (no dots, no whitespace)."""
    if not isinstance(x, str) or len(x) == 0:
        return False

    return all(ch in TOKEN_CHARS for ch in x)


def valid_prefix(x: str) -> bool:
    if not isinstance(x, str):
        return False

    return all(valid_token(part) for part in x.split("."))

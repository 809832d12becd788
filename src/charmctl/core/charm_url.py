"""Pure charm URL parsing and inference.

Every function in this module is a **pure** transformation with no I/O or
side effects.

Accepted forms, assuming a default series of ``precise``:

=============================  ===============================
input                          resolved URL
=============================  ===============================
``mysql``                      ``cs:precise/mysql``
``precise/mysql``              ``cs:precise/mysql``
``mysql-33``                   ``cs:precise/mysql-33``
``~user/mysql``                ``cs:~user/precise/mysql``
``cs:~user/mysql``             ``cs:~user/precise/mysql``
``local:mysql``                ``local:precise/mysql``
``local:oneiric/mysql-2``      ``local:oneiric/mysql-2``
=============================  ===============================
"""

from __future__ import annotations

import re

from charmctl.core.models import CharmURL
from charmctl.exceptions import AmbiguousCharmError, InvalidCharmNameError

SCHEMAS: tuple[str, ...] = ("cs", "local")

_VALID_USER = re.compile(r"^[a-z0-9][a-zA-Z0-9+.-]+$")
_VALID_SERIES = re.compile(r"^[a-z]+([a-z-]+[a-z])?$")
_VALID_NAME = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]*[a-z][a-z0-9]*)*$")
_REVISION = re.compile(r"[0-9]+")


# ---------------------------------------------------------------------------
# Strict parsing
# ---------------------------------------------------------------------------

def parse_charm_url(url: str) -> CharmURL:
    """Parse a complete charm URL (schema and series both present).

    Raises
    ------
    InvalidCharmNameError
        When *url* is not a well-formed charm URL.
    """
    schema, sep, rest = url.partition(":")
    if not sep or schema not in SCHEMAS:
        raise InvalidCharmNameError(f"charm URL has invalid schema: {url!r}")

    parts = rest.split("/")
    user: str | None = None
    if parts[0].startswith("~"):
        if schema == "local":
            raise InvalidCharmNameError(f"local charm URL with user name: {url!r}")
        user = parts[0][1:]
        if not _VALID_USER.match(user):
            raise InvalidCharmNameError(f"charm URL has invalid user name: {url!r}")
        parts = parts[1:]

    if len(parts) < 2:
        raise InvalidCharmNameError(f"charm URL without series: {url!r}")
    if len(parts) > 2:
        raise InvalidCharmNameError(f"charm URL has invalid form: {url!r}")

    series, name_rev = parts
    if not _VALID_SERIES.match(series):
        raise InvalidCharmNameError(f"charm URL has invalid series: {url!r}")

    name, revision = _split_revision(name_rev)
    if not _VALID_NAME.match(name):
        raise InvalidCharmNameError(f"charm URL has invalid charm name: {url!r}")

    return CharmURL(schema=schema, user=user, series=series, name=name, revision=revision)


def _split_revision(name_rev: str) -> tuple[str, int | None]:
    """Split a trailing ``-<integer>`` revision suffix off a charm name."""
    head, sep, tail = name_rev.rpartition("-")
    if sep and head and _REVISION.fullmatch(tail):
        return head, int(tail)
    return name_rev, None


def _is_complete(src: str) -> bool:
    """Return True when *src* names both a schema and a series."""
    try:
        parse_charm_url(src)
    except InvalidCharmNameError:
        return False
    return True


# ---------------------------------------------------------------------------
# Inference from condensed forms
# ---------------------------------------------------------------------------

def infer_charm_url(src: str, default_series: str | None) -> CharmURL:
    """Expand a possibly-condensed charm identifier into a full URL.

    Rules, in order:

    1. A complete URL is returned as parsed.
    2. A missing series is filled with *default_series*.
    3. A ``~user`` prefix without schema implies the ``cs`` schema.
    4. A trailing ``-<integer>`` on the name is an explicit revision.

    Raises
    ------
    AmbiguousCharmError
        When the series is omitted and no default series is available.
    InvalidCharmNameError
        When *src* cannot be parsed into a charm URL.
    """
    src = src.strip()
    if not src:
        raise InvalidCharmNameError("charm name must not be empty")
    if _is_complete(src):
        return parse_charm_url(src)

    schema, sep, rest = src.partition(":")
    if not sep:
        schema, rest = "cs", src

    parts = rest.split("/")
    has_user = parts[0].startswith("~")
    # [~user/]name is the only shape with a series to fill in.
    needs_series = len(parts) == (2 if has_user else 1)

    if needs_series:
        if not default_series:
            raise AmbiguousCharmError(
                f"cannot infer series for charm {src!r}",
                hint="Name the series explicitly, e.g. precise/<charm>, "
                "or set default-series for the environment.",
            )
        parts.insert(len(parts) - 1, default_series)

    full = f"{schema}:{'/'.join(parts)}"
    try:
        return parse_charm_url(full)
    except InvalidCharmNameError as exc:
        if full == src:
            raise
        raise InvalidCharmNameError(f"{exc} (URL inferred from {src!r})") from exc

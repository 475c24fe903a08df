"""
Whole-formula rewriting.

Drives the tokenizer and the remapper over one formula string.  Tokens are
spliced right to left so the offsets of tokens further left stay valid.  The
first failing token aborts the rewrite; a best-effort scan over every
reference then reports all headers the destination is missing, so the
caller can tell the user exactly what to add back.
"""

import logging

from .config import DEFAULTS
from .models import MISSING_HEADERS, RemapOutcome
from .remapper import remap_token, resolve_header
from .tokenizer import tokenize

logger = logging.getLogger(__name__)


def collect_missing_headers(tokens, ctx):
    """Headers referenced by *tokens* that the destination does not have.

    Left-to-right, de-duplicated.  Columns that cannot be named at all are
    ignored.
    """
    missing = []
    for token in tokens:
        for ep in token.endpoints:
            if ep.col is None:
                continue
            header, _reason = resolve_header(ep.col_idx, ctx)
            if header is None or ctx.dest_position(header) is not None:
                continue
            if header not in missing:
                missing.append(header)
    return missing


def rewrite_formula(formula, ctx):
    """Rewrite *formula* for the destination described by *ctx*.

    Returns a ``RemapOutcome``: ``rewritten`` with the new formula text when
    every reference moved, otherwise ``missing_headers`` / ``unresolvable``
    carrying the names found by the fallback scan.
    """
    tokens = tokenize(formula)
    if not tokens:
        return RemapOutcome.rewritten(formula)

    text = formula
    for token in sorted(tokens, key=lambda t: t.start, reverse=True):
        outcome = remap_token(token, ctx)
        if not outcome.ok:
            names = collect_missing_headers(tokens, ctx)
            logger.debug("Cannot rewrite %r (%s); missing headers: %s",
                         formula, outcome.reason, names)
            if outcome.status == MISSING_HEADERS:
                return RemapOutcome.missing(names or outcome.missing_headers,
                                            reason=outcome.reason)
            return RemapOutcome.unresolvable(outcome.reason, names)
        text = text[:token.start] + outcome.text + text[token.end:]

    return RemapOutcome.rewritten(text)


def missing_placeholder(names, config=None):
    """Literal text written in place of a formula that could not be moved."""
    config = config or DEFAULTS
    if not names:
        return config["unresolved_placeholder"]
    return config["missing_header_prefix"] + config["missing_header_separator"].join(names)


def placeholder_for(outcome, config=None):
    """Placeholder text for a failed ``RemapOutcome``."""
    return missing_placeholder(list(outcome.missing_headers), config)

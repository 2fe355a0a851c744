#!/usr/bin/env python3
"""
ICU MessageFormat analysis.

Classifies messages as simple, complex (plain ``{name}`` arguments), plural
or select, extracts argument names and case labels, and reports syntax
problems. The scanner honours ICU apostrophe quoting, so ``'{'`` is a
literal brace and ``''`` a literal apostrophe.
"""

import re
from dataclasses import dataclass, field

PLURAL_KEYWORDS = {'zero', 'one', 'two', 'few', 'many', 'other'}
PLURAL_TYPES = ('plural', 'selectordinal')
SELECT_TYPES = ('select',)

_MISSING_COMMA_RE = re.compile(r'^\s*([A-Za-z_]\w*)\s+(plural|select|selectordinal)\b')
_LOOSE_ARGUMENT_RE = re.compile(r'\{\s*([A-Za-z_]\w*)')
_EXACT_SELECTOR_RE = re.compile(r'^=\d+$')


@dataclass
class IcuMessageInfo:
    """Result of analyze_message()."""
    has_icu_syntax: bool = False
    message_type: str = 'simple'
    placeholders: list[str] = field(default_factory=list)
    plural_forms: list[str] = field(default_factory=list)
    select_options: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'has_icu_syntax': self.has_icu_syntax,
            'message_type': self.message_type,
            'placeholders': list(self.placeholders),
            'plural_forms': list(self.plural_forms),
            'select_options': list(self.select_options),
        }


@dataclass
class IcuProblem:
    code: str
    message: str
    severity: str = 'error'


class _Scan:
    """Mutable state shared by one analysis pass."""

    def __init__(self, key: str):
        self.key = key
        self.placeholders: list[str] = []
        self.plural_forms: list[str] = []
        self.select_options: list[str] = []
        self.has_plural = False
        self.has_select = False
        self.problems: list[IcuProblem] = []

    def add_placeholder(self, name: str) -> None:
        if name and name not in self.placeholders:
            self.placeholders.append(name)

    def error(self, code: str, message: str) -> None:
        self.problems.append(IcuProblem(code, message, 'error'))

    def warning(self, code: str, message: str) -> None:
        self.problems.append(IcuProblem(code, message, 'warning'))


def mask_quoted(text: str) -> str:
    """
    Blank out ICU-quoted characters so braces inside quotes are ignored.

    The returned string has the same length as the input.
    """
    chars = list(text)
    n = len(text)
    i = 0
    while i < n:
        if text[i] != "'":
            i += 1
            continue
        if i + 1 < n and text[i + 1] == "'":
            chars[i] = chars[i + 1] = '_'
            i += 2
            continue
        if i + 1 < n and text[i + 1] in '{}#|':
            j = i + 1
            while j < n:
                if text[j] == "'":
                    if j + 1 < n and text[j + 1] == "'":
                        j += 2
                        continue
                    break
                j += 1
            for k in range(i, min(j + 1, n)):
                chars[k] = '_'
            i = j + 1
            continue
        i += 1
    return ''.join(chars)


def brackets_balanced(text: str) -> bool:
    depth = 0
    for char in mask_quoted(text):
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def _matching(text: str, open_index: int) -> int:
    depth = 0
    for i in range(open_index, len(text)):
        if text[i] == '{':
            depth += 1
        elif text[i] == '}':
            depth -= 1
            if depth == 0:
                return i
    return len(text)


def _split_top_level(body: str) -> tuple[str, str, str]:
    """Split at the first comma outside nested braces."""
    depth = 0
    for i, char in enumerate(body):
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
        elif char == ',' and depth == 0:
            return body[:i], ',', body[i + 1:]
    return body, '', ''


def _scan_message(text: str, scan: _Scan) -> None:
    i = 0
    while i < len(text):
        if text[i] == '{':
            close = _matching(text, i)
            _scan_argument(text[i + 1:close], scan)
            i = close + 1
        else:
            i += 1


def _scan_argument(body: str, scan: _Scan) -> None:
    head, sep, rest = _split_top_level(body)

    # "{count plural, ...}" or "{count plural ...}"
    match = _MISSING_COMMA_RE.match(head)
    if match:
        scan.error(
            'ICU_MISSING_COMMA',
            f'ICU message in "{scan.key}" is missing a comma after "{match.group(1)}"',
        )
        scan.add_placeholder(match.group(1))
        _scan_options(match.group(2), head[match.end():] + ' ' + rest, scan)
        return

    if not sep:
        scan.add_placeholder(head.strip())
        return

    scan.add_placeholder(head.strip())
    arg_type, sep, options = _split_top_level(rest)
    arg_type = arg_type.strip()

    if arg_type in PLURAL_TYPES + SELECT_TYPES:
        if not sep:
            scan.error(
                'ICU_MISSING_COMMA',
                f'ICU message in "{scan.key}" is missing a comma after "{arg_type}"',
            )
        _scan_options(arg_type, options, scan)
        return

    word = arg_type.split(None, 1)[0] if arg_type else ''
    if word in PLURAL_TYPES + SELECT_TYPES:
        scan.error(
            'ICU_MISSING_COMMA',
            f'ICU message in "{scan.key}" is missing a comma after "{word}"',
        )
        _scan_options(word, arg_type[len(word):] + sep + options, scan)
    # number/date/time arguments carry no nested messages


def _scan_options(arg_type: str, options: str, scan: _Scan) -> None:
    selectors = []
    i = 0
    n = len(options)
    while i < n:
        if options[i].isspace():
            i += 1
            continue
        if options[i] == '{':
            close = _matching(options, i)
            _scan_message(options[i + 1:close], scan)
            i = close + 1
            continue

        j = i
        while j < n and not options[j].isspace() and options[j] != '{':
            j += 1
        selector = options[i:j]
        k = j
        while k < n and options[k].isspace():
            k += 1

        if k < n and options[k] == '{':
            close = _matching(options, k)
            if not selector.startswith('offset:'):
                selectors.append(selector)
            _scan_message(options[k + 1:close], scan)
            i = close + 1
        else:
            i = k

    if arg_type in PLURAL_TYPES:
        scan.has_plural = True
        for selector in selectors:
            if selector not in scan.plural_forms:
                scan.plural_forms.append(selector)
        invalid = [
            s for s in selectors
            if s not in PLURAL_KEYWORDS and not _EXACT_SELECTOR_RE.match(s)
        ]
        if invalid:
            scan.error(
                'ICU_INVALID_PLURAL_KEYWORD',
                f'ICU plural message in "{scan.key}" has invalid keywords: {", ".join(invalid)}',
            )
        if 'other' not in selectors:
            scan.error(
                'ICU_MISSING_OTHER_PLURAL',
                f'ICU plural message in "{scan.key}" must include \'other\' form',
            )
    else:
        scan.has_select = True
        for selector in selectors:
            if selector not in scan.select_options:
                scan.select_options.append(selector)
        if 'other' not in selectors:
            scan.warning(
                'ICU_MISSING_OTHER_SELECT',
                f'ICU select message in "{scan.key}" should include \'other\' option',
            )


def _analyze(text: str, key: str) -> tuple[IcuMessageInfo, list[IcuProblem]]:
    scan = _Scan(key)
    masked = mask_quoted(text)
    info = IcuMessageInfo(has_icu_syntax='{' in masked or '}' in masked)
    if not info.has_icu_syntax:
        return info, []

    if brackets_balanced(text):
        _scan_message(masked, scan)
    else:
        scan.error(
            'ICU_BRACKET_MISMATCH',
            f'ICU message in "{key}" has mismatched brackets',
        )
        for name in _LOOSE_ARGUMENT_RE.findall(masked):
            scan.add_placeholder(name)
        scan.has_plural = bool(re.search(r',\s*(plural|selectordinal)\s*,', masked))
        scan.has_select = bool(re.search(r',\s*select\s*,', masked))

    info.placeholders = scan.placeholders
    info.plural_forms = scan.plural_forms
    info.select_options = scan.select_options
    if scan.has_plural:
        info.message_type = 'plural'
    elif scan.has_select:
        info.message_type = 'select'
    elif scan.placeholders:
        info.message_type = 'complex'
    return info, scan.problems


def analyze_message(text: str) -> IcuMessageInfo:
    """
    Classify an ICU message and collect its arguments.

    >>> analyze_message('{count, plural, one {# item} other {# items}}').plural_forms
    ['one', 'other']
    """
    info, _ = _analyze(text, 'message')
    return info


def validate_message(text: str, key: str = 'message') -> list[IcuProblem]:
    """
    Check an ICU message for syntax problems.

    Missing ``other`` is an error for plural and a warning for select.
    """
    _, problems = _analyze(text, key)
    return problems

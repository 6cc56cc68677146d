"""
manifest.py — package.json reader/writer (pure stdlib, no json module)

Parsing is tolerant: the document is tokenized and read by a small
recursive-descent parser that skips a damaged top-level member and
carries on with the next one, and each manifest field is then extracted
by key. A missing or mistyped field becomes its zero value instead of
failing the whole parse.

Serialization writes fields in a fixed order, omits empty optional fields
and escapes every non-ASCII character as ``\\uXXXX`` so output is stable
and diff-friendly.
"""

import logging
import os
import re
import stat
import tempfile

from .models import (
    AuthorInfo, PackageManifest, SampleInfo,
    PACKAGE_JSON_FILENAME, DEFAULT_VERSION, DEFAULT_UNITY_VERSION,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

_PUNCTUATION = frozenset('{}[]:,')
_NUMBER_RE = re.compile(r'-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?')
_WORD_RE = re.compile(r'[A-Za-z_]+')
_LITERALS = {'true': True, 'false': False, 'null': None}

_SIMPLE_ESCAPES = {
    '"': '"', '\\': '\\', '/': '/',
    'b': '\b', 'f': '\f', 'n': '\n', 'r': '\r', 't': '\t',
}


def _tokenize(text):
    """Yield (kind, value) tokens.

    kind is one of the punctuation characters, 'string', 'number',
    'literal' or 'invalid'. Unknown words and characters become 'invalid'
    tokens so the parser can skip the member holding them. Tokenizing
    stops quietly at an unterminated string; the parser sees that as a
    truncated document.
    """
    pos = 0
    length = len(text)
    while pos < length:
        c = text[pos]
        if c.isspace():
            pos += 1
        elif c in _PUNCTUATION:
            yield c, c
            pos += 1
        elif c == '"':
            end = pos + 1
            while end < length and text[end] != '"':
                end += 2 if text[end] == '\\' else 1
            if end >= length:
                return
            yield 'string', unescape_string(text[pos + 1:end])
            pos = end + 1
        else:
            m = _NUMBER_RE.match(text, pos)
            if m:
                raw = m.group(0)
                yield 'number', float(raw) if any(ch in raw for ch in '.eE') else int(raw)
                pos = m.end()
                continue
            m = _WORD_RE.match(text, pos)
            if m:
                word = m.group(0)
                if word in _LITERALS:
                    yield 'literal', _LITERALS[word]
                else:
                    yield 'invalid', word
                pos = m.end()
                continue
            yield 'invalid', c
            pos += 1


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class _SyntaxError(Exception):
    """Internal signal: abandon the current member, keep what was built so far."""


class _Parser:
    """Recursive-descent parser over the token stream.

    Top-level members are parsed one at a time. A syntax error inside a
    member unwinds to the root, which skips ahead to the next member and
    carries on. Containers are attached to their parent before they are
    filled, so a damaged member still keeps what was read before the error.
    """

    def __init__(self, text):
        self._tokens = list(_tokenize(text))
        self._pos = 0

    def _peek(self):
        if self._pos >= len(self._tokens):
            raise _SyntaxError('unexpected end of document')
        return self._tokens[self._pos]

    def _next(self):
        tok = self._peek()
        self._pos += 1
        return tok

    def _expect(self, kind):
        tok = self._next()
        if tok[0] != kind:
            raise _SyntaxError(f'expected {kind!r}, got {tok[0]!r}')
        return tok

    def _kind_at(self, pos):
        return self._tokens[pos][0] if pos < len(self._tokens) else None

    def _at_member(self, pos):
        return self._kind_at(pos) == 'string' and self._kind_at(pos + 1) == ':'

    def parse_document(self):
        root = {}
        if not self._tokens or self._tokens[0][0] != '{':
            return root
        self._pos = 1
        while self._pos < len(self._tokens):
            start = self._pos
            if self._kind_at(start) == '}':
                break
            try:
                key = self._expect('string')[1]
                self._expect(':')
                self._value_into(lambda v, k=key: root.__setitem__(k, v))
            except _SyntaxError as e:
                logger.debug("Skipping malformed manifest member: %s", e)
                if not self._skip_member(start):
                    break
                continue

            kind = self._kind_at(self._pos)
            if kind == ',':
                self._pos += 1
            elif kind in ('}', None):
                break
            elif not self._at_member(self._pos):
                # Missing comma before the next "key": is tolerated
                if not self._skip_member(self._pos, inclusive=True):
                    break
        return root

    def _skip_member(self, start, inclusive=False):
        """Move past the damaged member starting at ``start``.

        Stops after the next ',' at member depth, or before the next
        ``"key":`` pair there. Returns False when the root object ends
        (or the document runs out) first.
        """
        depth = 0
        pos = start if inclusive else start + 1
        while pos < len(self._tokens):
            kind = self._kind_at(pos)
            if kind in ('{', '['):
                depth += 1
            elif kind in ('}', ']'):
                if depth == 0:
                    if kind == '}':
                        self._pos = pos
                        return False
                else:
                    depth -= 1
            elif depth == 0:
                if kind == ',':
                    self._pos = pos + 1
                    return True
                if self._at_member(pos):
                    self._pos = pos
                    return True
            pos += 1
        self._pos = pos
        return False

    def _value_into(self, assign):
        """Parse one value and hand it to ``assign`` as early as possible."""
        kind, value = self._peek()
        if kind == '{':
            self._pos += 1
            child = {}
            assign(child)
            self._fill_object(child)
        elif kind == '[':
            self._pos += 1
            child = []
            assign(child)
            self._fill_array(child)
        elif kind in ('string', 'number', 'literal'):
            self._pos += 1
            assign(value)
        else:
            raise _SyntaxError(f'unexpected {kind!r}')

    def _fill_object(self, target):
        if self._peek()[0] == '}':
            self._pos += 1
            return
        while True:
            key = self._expect('string')[1]
            self._expect(':')
            self._value_into(lambda v, k=key: target.__setitem__(k, v))
            kind = self._next()[0]
            if kind == '}':
                return
            if kind != ',':
                raise _SyntaxError(f'expected "," or "}}", got {kind!r}')

    def _fill_array(self, target):
        if self._peek()[0] == ']':
            self._pos += 1
            return
        while True:
            self._value_into(target.append)
            kind = self._next()[0]
            if kind == ']':
                return
            if kind != ',':
                raise _SyntaxError(f'expected "," or "]", got {kind!r}')


# ---------------------------------------------------------------------------
# String escaping
# ---------------------------------------------------------------------------

def unescape_string(raw):
    """Decode JSON escape sequences.

    ``\\uXXXX`` pairs forming a UTF-16 surrogate pair are combined into one
    character. Unknown or incomplete escapes are kept literally.
    """
    if '\\' not in raw:
        return raw

    out = []
    i = 0
    n = len(raw)
    while i < n:
        c = raw[i]
        if c != '\\' or i + 1 >= n:
            out.append(c)
            i += 1
            continue

        nxt = raw[i + 1]
        if nxt in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[nxt])
            i += 2
            continue

        if nxt == 'u':
            code = _hex4(raw, i + 2)
            if code is not None:
                i += 6
                if 0xD800 <= code <= 0xDBFF and raw.startswith('\\u', i):
                    low = _hex4(raw, i + 2)
                    if low is not None and 0xDC00 <= low <= 0xDFFF:
                        code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                        i += 6
                out.append(chr(code))
                continue

        out.append(c)
        i += 1
    return ''.join(out)


def _hex4(raw, start):
    digits = raw[start:start + 4]
    if len(digits) != 4:
        return None
    try:
        return int(digits, 16)
    except ValueError:
        return None


def escape_string(value):
    """Escape a string for output; everything above code point 127 becomes \\uXXXX."""
    if not value:
        return ''

    out = []
    for c in value:
        code = ord(c)
        if c == '\\':
            out.append('\\\\')
        elif c == '"':
            out.append('\\"')
        elif c == '\n':
            out.append('\\n')
        elif c == '\r':
            out.append('\\r')
        elif c == '\t':
            out.append('\\t')
        elif code < 0x20 or code == 0x7f:
            out.append(f'\\u{code:04x}')
        elif code > 0xFFFF:
            code -= 0x10000
            out.append(f'\\u{0xD800 + (code >> 10):04x}\\u{0xDC00 + (code & 0x3FF):04x}')
        elif code > 127:
            out.append(f'\\u{code:04x}')
        else:
            out.append(c)
    return ''.join(out)


def _quote(value):
    return f'"{escape_string(value)}"'


# ---------------------------------------------------------------------------
# Field extraction
# ---------------------------------------------------------------------------

def _get_str(obj, key):
    value = obj.get(key)
    return value if isinstance(value, str) else ''


def _get_author(value):
    if isinstance(value, dict):
        return AuthorInfo(
            name=_get_str(value, 'name'),
            email=_get_str(value, 'email'),
            url=_get_str(value, 'url'),
        )
    if isinstance(value, str):
        return AuthorInfo(name=value)
    return AuthorInfo()


def _get_dependencies(value):
    deps = {}
    if not isinstance(value, dict):
        return deps
    for name, version_range in value.items():
        if isinstance(version_range, str):
            deps[name] = version_range
        else:
            logger.warning("Skipping dependency %r: version range is not a string", name)
    return deps


def _get_samples(value):
    if not isinstance(value, list):
        return []
    return [SampleInfo(display_name=_get_str(s, 'displayName'),
                       description=_get_str(s, 'description'),
                       path=_get_str(s, 'path'))
            for s in value if isinstance(s, dict)]


def parse_manifest(document):
    """Parse package.json text into a PackageManifest.

    Never raises for malformed input; unknown keys are ignored.
    """
    data = _Parser(document or '').parse_document()

    keywords = data.get('keywords')
    return PackageManifest(
        name=_get_str(data, 'name'),
        display_name=_get_str(data, 'displayName'),
        version=_get_str(data, 'version'),
        unity=_get_str(data, 'unity'),
        description=_get_str(data, 'description'),
        license=_get_str(data, 'license'),
        documentation_url=_get_str(data, 'documentationUrl'),
        changelog_url=_get_str(data, 'changelogUrl'),
        licenses_url=_get_str(data, 'licensesUrl'),
        keywords=[k for k in keywords if isinstance(k, str)] if isinstance(keywords, list) else [],
        author=_get_author(data.get('author')),
        dependencies=_get_dependencies(data.get('dependencies')),
        hide_in_editor=data.get('hideInEditor') is True,
        samples=_get_samples(data.get('samples')),
    )


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _block(opening, items, closing, indent):
    inner = ',\n'.join(items)
    return f'{opening}\n{inner}\n{indent}{closing}'


def serialize_manifest(manifest):
    """Render a PackageManifest as package.json text."""
    members = []

    def add(key, rendered):
        members.append(f'    "{key}": {rendered}')

    add('name', _quote(manifest.name))
    add('displayName', _quote(manifest.display_name))
    add('version', _quote(manifest.version))
    add('unity', _quote(manifest.unity))
    add('description', _quote(manifest.description))

    for key, value in (('license', manifest.license),
                       ('documentationUrl', manifest.documentation_url),
                       ('changelogUrl', manifest.changelog_url),
                       ('licensesUrl', manifest.licenses_url)):
        if value:
            add(key, _quote(value))

    if manifest.hide_in_editor:
        add('hideInEditor', 'true')

    if manifest.keywords:
        add('keywords', _block('[', [f'        {_quote(k)}' for k in manifest.keywords],
                               ']', '    '))

    author = manifest.author
    if author is not None and not author.is_empty():
        fields = [f'        "{key}": {_quote(value)}'
                  for key, value in (('name', author.name),
                                     ('email', author.email),
                                     ('url', author.url))
                  if value]
        add('author', _block('{', fields, '}', '    '))

    if manifest.dependencies:
        add('dependencies', _block(
            '{', [f'        {_quote(name)}: {_quote(rng)}'
                  for name, rng in manifest.dependencies.items()],
            '}', '    '))
    else:
        add('dependencies', '{}')

    if manifest.samples:
        samples = []
        for sample in manifest.samples:
            samples.append(_block('        {', [
                f'            "displayName": {_quote(sample.display_name)}',
                f'            "description": {_quote(sample.description)}',
                f'            "path": {_quote(sample.path)}',
            ], '}', '        '))
        add('samples', _block('[', samples, ']', '    '))

    return _block('{', members, '}', '') + '\n'


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------

def manifest_path(directory):
    return os.path.join(os.path.abspath(directory), PACKAGE_JSON_FILENAME)


def manifest_exists(directory):
    return os.path.isfile(manifest_path(directory))


def read_manifest(directory):
    """Read package.json from a package directory.

    Returns:
        PackageManifest, or None if the file is missing or unreadable.
    """
    path = manifest_path(directory)
    if not os.path.isfile(path):
        return None
    try:
        with open(path, 'r', encoding='utf-8-sig') as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read %s: %s", path, e)
        return None
    return parse_manifest(text)


def _file_mode(path):
    """Permission bits for a rewritten file: the existing file's, else 0o666 minus umask."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_manifest(directory, manifest):
    """Write package.json into ``directory``, creating it if needed.

    The file is written to a temp file and renamed into place, so a
    failed write never leaves a half-written manifest behind.

    Returns:
        True on success, False on I/O failure.
    """
    text = serialize_manifest(manifest)
    tmp_path = None
    try:
        directory = os.path.abspath(directory)
        os.makedirs(directory, exist_ok=True)
        tmp_fd, tmp_path = tempfile.mkstemp(suffix='.tmp', dir=directory)
        with os.fdopen(tmp_fd, 'w', encoding='utf-8', newline='\n') as f:
            f.write(text)
        target = manifest_path(directory)
        os.chmod(tmp_path, _file_mode(target))
        os.replace(tmp_path, target)
        return True
    except OSError as e:
        logger.error("Failed to write package.json in %s: %s", directory, e)
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        return False


def create_default_manifest(name, display_name):
    """Manifest pre-filled with the defaults used for new packages."""
    return PackageManifest(
        name=name,
        display_name=display_name,
        version=DEFAULT_VERSION,
        unity=DEFAULT_UNITY_VERSION,
    )

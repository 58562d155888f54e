"""Line-preserving model of an smb.conf style file.

``parse`` and ``serialize`` are exact inverses: every line keeps its own
terminator and nothing is re-rendered unless it is explicitly changed, so
comments, ordering, spacing and unknown sections survive any edit.
"""

from typing import Iterator, List, Optional, Sequence, Tuple

COMMENT_PREFIXES = ("#", ";")
INDENT = "  "

# smb.conf accepts several spellings for the same parameter.
KEY_SYNONYMS = {
    "browsable": "browseable",
    "writeable": "writable",
    "createmode": "createmask",
    "directorymode": "directorymask",
}


def normalize_key(key: str) -> str:
    """Fold case, whitespace and known synonyms: ``Read Only`` -> ``readonly``."""
    folded = "".join(key.split()).lower()
    return KEY_SYNONYMS.get(folded, folded)


def is_header(line: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= 2 and stripped.startswith("[") and stripped.endswith("]")


def header_name(line: str) -> str:
    return line.strip()[1:-1].strip()


def split_entry(line: str) -> Optional[Tuple[str, str]]:
    """Return ``(key, value)`` for a ``key = value`` line, else ``None``."""
    stripped = line.strip()
    if not stripped or stripped.startswith(COMMENT_PREFIXES) or "=" not in stripped:
        return None
    key, value = stripped.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip()


def _terminator(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""


def _split_lines(text: str) -> List[str]:
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _is_blank(line: str) -> bool:
    return not line.strip()


class Section:
    """A header line plus the raw lines that follow it.

    The preamble (text before the first header) is a section whose
    ``header`` is ``None``.
    """

    def __init__(self, header: Optional[str], lines: Optional[List[str]] = None):
        self.header = header
        self.lines: List[str] = lines if lines is not None else []

    @property
    def name(self) -> Optional[str]:
        if self.header is None:
            return None
        return header_name(self.header)

    @property
    def key(self) -> Optional[str]:
        name = self.name
        return name.lower() if name is not None else None

    def entries(self) -> Iterator[Tuple[int, str, str]]:
        """Yield ``(line_index, key, value)`` for every key/value line."""
        for index, line in enumerate(self.lines):
            entry = split_entry(line)
            if entry is not None:
                yield index, entry[0], entry[1]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of the last line whose key matches ``key``."""
        wanted = normalize_key(key)
        found = default
        for _, entry_key, value in self.entries():
            if normalize_key(entry_key) == wanted:
                found = value
        return found

    def set_existing(self, key: str, value: str) -> int:
        """Rewrite the value of every existing line for ``key``.

        Indentation, the key as written and the line terminator are kept.
        Returns the number of lines changed; nothing is inserted.
        """
        wanted = normalize_key(key)
        changed = 0
        for index, entry_key, _ in list(self.entries()):
            if normalize_key(entry_key) != wanted:
                continue
            line = self.lines[index]
            indent = line[: len(line) - len(line.lstrip())]
            self.lines[index] = f"{indent}{entry_key} = {value}{_terminator(line)}"
            changed += 1
        return changed

    def replace_body(self, lines: Sequence[str]) -> None:
        """Swap the body for ``lines``, keeping trailing blank separator lines."""
        trailing: List[str] = []
        for line in reversed(self.lines):
            if not _is_blank(line):
                break
            trailing.insert(0, line)
        body = [line if _terminator(line) else line + "\n" for line in lines]
        self.lines = body + trailing

    def render(self) -> str:
        return (self.header or "") + "".join(self.lines)

    def __repr__(self) -> str:
        return f"Section({self.name!r}, {len(self.lines)} lines)"


class ConfigDocument:
    """Ordered sections of a configuration file; ``sections[0]`` is the preamble."""

    def __init__(self, sections: Optional[List[Section]] = None):
        self.sections: List[Section] = sections if sections is not None else [Section(None)]

    @property
    def preamble(self) -> Section:
        return self.sections[0]

    def named_sections(self) -> Iterator[Section]:
        for section in self.sections[1:]:
            yield section

    def find(self, name: str) -> Optional[Section]:
        """Exact header match, as used for generated share ids."""
        for section in self.named_sections():
            if section.name == name:
                return section
        return None

    def sections_named(self, name: str) -> List[Section]:
        """Case-insensitive header match, as used for ``global`` and ``homes``."""
        wanted = name.lower()
        return [section for section in self.named_sections() if section.key == wanted]

    def append(self, section: Section) -> None:
        """Add ``section`` at the end, separated from the previous one by a blank line."""
        last = self.sections[-1]
        if last.lines:
            if not _terminator(last.lines[-1]):
                last.lines[-1] += "\n"
        elif last.header is not None and not _terminator(last.header):
            last.header += "\n"
        if (last.lines or last.header is not None) and not (last.lines and _is_blank(last.lines[-1])):
            last.lines.append("\n")
        self.sections.append(section)

    def remove(self, name: str) -> bool:
        section = self.find(name)
        if section is None:
            return False
        self.sections.remove(section)
        return True

    def __len__(self) -> int:
        return len(self.sections) - 1


def parse(text: str) -> ConfigDocument:
    """Split ``text`` into sections without losing a single character."""
    sections = [Section(None)]
    for line in _split_lines(text):
        if is_header(line):
            sections.append(Section(line))
        else:
            sections[-1].lines.append(line)
    return ConfigDocument(sections)


def serialize(document: ConfigDocument) -> str:
    return "".join(section.render() for section in document.sections)


def build_section(name: str, entries: Sequence[Tuple[str, str]]) -> Section:
    """Render a new ``[name]`` section from ``(key, value)`` pairs."""
    return Section(f"[{name}]\n", build_lines(entries))


def build_lines(entries: Sequence[Tuple[str, str]]) -> List[str]:
    return [f"{INDENT}{key} = {value}\n" for key, value in entries]

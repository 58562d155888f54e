import logging

from sambadmin.errors import FileOperationError
from sambadmin.smbconf.document import ConfigDocument, parse, serialize

logger = logging.getLogger(__name__)


class ConfigStore:
    """Reads and rewrites the smb.conf file; nothing is cached between calls."""

    def __init__(self, path: str):
        self.path = path

    def read_text(self) -> str:
        try:
            # newline="" keeps CRLF files byte-identical across a rewrite
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FileOperationError(f"Failed to read samba config {self.path}: {e}", self.path) from e

    def write_text(self, content: str) -> None:
        # encoded before opening so an unencodable string never truncates the file
        try:
            data = content.encode("utf-8")
        except UnicodeEncodeError as e:
            raise FileOperationError(f"Cannot encode samba config for {self.path}: {e}", self.path) from e
        try:
            with open(self.path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise FileOperationError(f"Failed to write samba config {self.path}: {e}", self.path) from e
        logger.debug(f"Wrote {len(content)} characters to {self.path}")

    def read_document(self) -> ConfigDocument:
        return parse(self.read_text())

    def write_document(self, document: ConfigDocument) -> None:
        self.write_text(serialize(document))

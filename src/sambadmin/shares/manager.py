import logging
import os
import posixpath
from typing import List, Optional, Sequence, Tuple

from sambadmin import validation
from sambadmin.context import AppContext
from sambadmin.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from sambadmin.shares.models import ShareCreate, ShareRecord, ShareUpdate, UserRemovalPlan
from sambadmin.smbconf.document import ConfigDocument, Section, build_lines, build_section
from sambadmin.smbconf.store import ConfigStore

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
SHARE_DIRECTORY_MODE = 0o770


def _str_to_bool(val: str) -> bool:
    return val.lower() in ("yes", "true", "1", "on")


def _single_line(value: str, what: str) -> str:
    if "\n" in value or "\r" in value:
        raise ValidationError(f"Invalid {what}: must be a single line.")
    return value.strip()


class ShareManager:
    """Generated ``<owner>-share-<suffix>`` sections of smb.conf."""

    def __init__(self, context: AppContext):
        self.context = context
        self.store = ConfigStore(context.config.samba_config_path)

    @property
    def port(self):
        return self.context.port

    def home_dir(self, owner: str) -> str:
        return os.path.join(self.context.config.home_dir, owner)

    def read_document(self) -> ConfigDocument:
        return self.store.read_document()

    def record_from_section(self, section: Section) -> Optional[ShareRecord]:
        """Build a :class:`ShareRecord` from a section, or ``None`` if it is not a share."""
        parsed = validation.parse_share_id(section.name or "")
        if parsed is None:
            return None
        owner = parsed[0]
        path = section.get("path") or ""

        read_only_value = section.get("read only")
        if read_only_value is not None:
            read_only = _str_to_bool(read_only_value)
        else:
            writable = section.get("writable")
            read_only = writable is not None and not _str_to_bool(writable)

        return ShareRecord(
            id=section.name,
            owner=owner,
            path=path,
            sub_path=self._sub_path_of(owner, path),
            shared_with=(section.get("valid users") or "").split(),
            read_only=read_only,
            comment=section.get("comment") or "",
        )

    def _sub_path_of(self, owner: str, path: str) -> str:
        if not path:
            return ""
        home = posixpath.normpath(self.home_dir(owner))
        normalized = posixpath.normpath(path)
        if normalized == home:
            return ""
        prefix = home.rstrip("/") + "/"
        if normalized.startswith(prefix):
            return normalized[len(prefix):]
        return ""

    def list_shares(
        self,
        owner: Optional[str] = None,
        search: Optional[str] = None,
        document: Optional[ConfigDocument] = None,
    ) -> List[ShareRecord]:
        """List share records, optionally for one owner or matching a search term.

        ``search`` is a case-insensitive substring of the owner, id or comment.
        """
        if document is None:
            document = self.read_document()

        needle = search.lower() if search else None
        shares = []
        for section in document.named_sections():
            record = self.record_from_section(section)
            if record is None:
                continue
            if owner is not None and record.owner != owner:
                continue
            if needle and not any(needle in field.lower() for field in (record.owner, record.id, record.comment)):
                continue
            shares.append(record)
        return shares

    def get_share(self, share_id: str) -> ShareRecord:
        section = self.read_document().find(share_id)
        record = self.record_from_section(section) if section is not None else None
        if record is None:
            raise NotFoundError(f"Share '{share_id}' not found.")
        return record

    def create_share(self, request: ShareCreate) -> str:
        """Append a new share section and return its id."""
        owner = validation.require_account_name(request.owner, "owner username")
        name = (request.name or "").strip()
        if name:
            validation.require_record_name(name)
        shared_with = self._validate_shared_with(request.shared_with, owner)
        comment = _single_line(request.comment, "comment")
        sub_path = validation.clean_subpath(request.sub_path)
        home = self._require_home(owner)

        document = self.read_document()
        if name:
            share_id = f"{owner}-share-{name}"
            if document.find(share_id) is not None:
                raise ConflictError(f"Share name '{name}' already exists for user '{owner}'.")
        else:
            share_id = f"{owner}-share-{self.context.clock().strftime(TIMESTAMP_FORMAT)}"
            if document.find(share_id) is not None:
                raise ConflictError(f"Share '{share_id}' already exists, try again in a second.")

        path = self._prepare_path(home, sub_path)
        entries = self._share_entries(path, shared_with, request.read_only, comment)
        document.append(build_section(share_id, entries))
        self.store.write_document(document)
        logger.info(f"Created share {share_id} at {path}")

        self.port.reload_service()
        return share_id

    def update_share(self, share_id: str, request: ShareUpdate, acting_user: Optional[str] = None) -> ShareRecord:
        """Regenerate the body of ``share_id``; the owner never changes."""
        self._require_share_id(share_id)
        document = self.read_document()
        section, record = self._find(document, share_id)
        self._check_owner(record, acting_user)

        shared_with = self._validate_shared_with(request.shared_with, record.owner)
        comment = _single_line(request.comment, "comment")
        sub_path = validation.clean_subpath(request.sub_path)
        home = self._require_home(record.owner)

        path = self._prepare_path(home, sub_path)
        section.replace_body(build_lines(self._share_entries(path, shared_with, request.read_only, comment)))
        self.store.write_document(document)
        logger.info(f"Updated share {share_id}")

        self.port.reload_service()
        return self.record_from_section(section)

    def delete_share(self, share_id: str, acting_user: Optional[str] = None) -> None:
        """Drop the section; the shared directory is left on disk."""
        self._require_share_id(share_id)
        document = self.read_document()
        _, record = self._find(document, share_id)
        self._check_owner(record, acting_user)

        document.remove(share_id)
        self.store.write_document(document)
        logger.info(f"Deleted share {share_id}")

        self.port.reload_service()

    def plan_user_removal(self, document: ConfigDocument, username: str) -> UserRemovalPlan:
        """Work out which shares go away and which lose ``username``."""
        plan = UserRemovalPlan(username=username)
        for record in self.list_shares(document=document):
            if record.owner == username:
                plan.delete.append(record.id)
                continue
            if username not in record.shared_with:
                continue
            remaining = [user for user in record.shared_with if user != username]
            if remaining:
                plan.update[record.id] = record.model_copy(update={"shared_with": remaining})
            else:
                # a share granted to nobody has no reason to exist
                plan.delete.append(record.id)
        return plan

    def apply_removal_plan(self, document: ConfigDocument, plan: UserRemovalPlan) -> bool:
        """Apply ``plan`` to ``document`` and persist it in a single write."""
        if plan.is_empty():
            return False

        for share_id in plan.delete:
            document.remove(share_id)
        for share_id, record in plan.update.items():
            section = document.find(share_id)
            if section is None:
                continue
            path = record.path or self.home_dir(record.owner)
            entries = self._share_entries(path, record.shared_with, record.read_only, record.comment)
            section.replace_body(build_lines(entries))

        self.store.write_document(document)
        logger.info(
            f"Removed {plan.username} from shares: deleted {len(plan.delete)}, updated {len(plan.update)}"
        )
        return True

    def _share_entries(self, path: str, shared_with: Sequence[str], read_only: bool, comment: str) -> List[Tuple[str, str]]:
        entries = [
            ("path", path),
            ("browseable", "yes"),
            ("valid users", " ".join(shared_with)),
            ("force user", "root"),
            ("force group", "root"),
        ]
        if read_only:
            entries.append(("read only", "yes"))
        else:
            entries.append(("read only", "no"))
            entries.append(("writable", "yes"))
        if comment:
            entries.append(("comment", comment))
        return entries

    def _validate_shared_with(self, users: Sequence[str], owner: str) -> List[str]:
        # the owner reaches the share through [homes] and is never listed
        cleaned: List[str] = []
        for username in users:
            validation.require_account_name(username, "username in shared_with")
            if username != owner and username not in cleaned:
                cleaned.append(username)
        if not cleaned:
            raise ValidationError("Must share with at least one user other than the owner.")
        return cleaned

    def _require_share_id(self, share_id: str) -> None:
        if not validation.is_valid_share_id(share_id):
            raise ValidationError(f"Invalid share ID format: '{share_id}'.")

    def _require_home(self, owner: str) -> str:
        home = self.home_dir(owner)
        if not os.path.isdir(home):
            raise NotFoundError(f"Home directory of '{owner}' does not exist.")
        return home

    def _find(self, document: ConfigDocument, share_id: str) -> Tuple[Section, ShareRecord]:
        section = document.find(share_id)
        if section is None:
            raise NotFoundError(f"Share '{share_id}' not found.")
        return section, self.record_from_section(section)

    def _check_owner(self, record: ShareRecord, acting_user: Optional[str]) -> None:
        if acting_user is not None and record.owner != acting_user:
            raise ForbiddenError("You can only change your own shares.")

    def _prepare_path(self, home: str, sub_path: str) -> str:
        if not sub_path:
            return home
        path = os.path.join(home, sub_path)
        self.port.create_directory(path, mode=SHARE_DIRECTORY_MODE)
        return path

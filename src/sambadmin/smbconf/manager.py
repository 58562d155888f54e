import logging
from typing import Dict, Optional, Type

from pydantic import BaseModel

from sambadmin.context import AppContext
from sambadmin.errors import ConfigValidationError, FileOperationError, ValidationError
from sambadmin.smbconf.document import ConfigDocument, normalize_key
from sambadmin.smbconf.models import (
    GLOBAL_KEYS,
    HOMES_KEYS,
    ConfigFile,
    GlobalSettings,
    HomesSettings,
    SambaSettings,
)
from sambadmin.smbconf.store import ConfigStore

logger = logging.getLogger(__name__)


class SettingsManager:
    """The operator-authored ``[global]`` and ``[homes]`` sections, and the raw file."""

    def __init__(self, context: AppContext):
        self.context = context
        self.store = ConfigStore(context.config.samba_config_path)

    @property
    def port(self):
        return self.context.port

    def get_settings(self) -> SambaSettings:
        document = self.store.read_document()
        return SambaSettings(
            global_=self._read_section(document, "global", GlobalSettings, GLOBAL_KEYS),
            homes=self._read_section(document, "homes", HomesSettings, HOMES_KEYS),
        )

    def update_settings(
        self,
        global_: Optional[GlobalSettings] = None,
        homes: Optional[HomesSettings] = None,
    ) -> int:
        """Overwrite known keys that already exist and have a non-empty new value.

        Keys missing from the file are never added. Returns the number of
        lines rewritten.
        """
        document = self.store.read_document()
        changed = 0
        if global_ is not None:
            changed += self._write_section(document, "global", global_, GLOBAL_KEYS)
        if homes is not None:
            changed += self._write_section(document, "homes", homes, HOMES_KEYS)

        if changed:
            self.store.write_document(document)
            logger.info(f"Updated {changed} setting(s) in {self.store.path}")
            self.port.reload_service()
        return changed

    def get_raw(self) -> ConfigFile:
        return ConfigFile(content=self.store.read_text(), path=self.store.path)

    def replace_raw(self, content: str) -> None:
        """Replace the whole file, keeping it only if ``testparm`` accepts it."""
        backup = self.store.read_text()

        try:
            self.store.write_text(content)
        except Exception:
            self._restore(backup)
            raise

        result = self.port.validate_config(self.store.path)
        if not result.ok:
            diagnostic = result.output or f"exit {result.returncode}"
            try:
                self.store.write_text(backup)
            except FileOperationError as revert_error:
                logger.error(f"Could not restore {self.store.path} after failed validation: {revert_error}")
                raise ConfigValidationError(
                    f"Configuration validation failed and revert failed: {diagnostic} (revert error: {revert_error})",
                    output=result.output,
                    reverted=False,
                ) from revert_error
            logger.warning(f"Rejected new samba config: {diagnostic}")
            raise ConfigValidationError(
                f"Configuration validation failed, reverted to original: {diagnostic}",
                output=result.output,
                reverted=True,
            )

        logger.info(f"Replaced {self.store.path} ({len(content)} characters)")
        self.port.reload_service()

    def _restore(self, backup: str) -> None:
        try:
            self.store.write_text(backup)
        except FileOperationError as e:
            logger.error(f"Could not restore {self.store.path}: {e}")

    def _read_section(
        self,
        document: ConfigDocument,
        name: str,
        model: Type[BaseModel],
        keys: Dict[str, str],
    ) -> BaseModel:
        values = {}
        for section in document.sections_named(name):
            for _, key, value in section.entries():
                field = keys.get(normalize_key(key))
                if field:
                    values[field] = value
        return model(**values)

    def _write_section(
        self,
        document: ConfigDocument,
        name: str,
        settings: BaseModel,
        keys: Dict[str, str],
    ) -> int:
        updates = {}
        for key, field in keys.items():
            value = getattr(settings, field)
            if "\n" in value or "\r" in value:
                raise ValidationError(f"Invalid value for '{field}': must be a single line.")
            value = value.strip()
            if not value:
                continue
            updates[key] = value

        changed = 0
        for section in document.sections_named(name):
            for key, value in updates.items():
                changed += section.set_existing(key, value)
        return changed

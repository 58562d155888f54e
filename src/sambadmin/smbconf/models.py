from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class GlobalSettings(BaseModel):
    workgroup: str = ""
    server_string: str = ""
    security: str = ""
    passdb_backend: str = ""
    map_to_guest: str = ""
    access_based_share_enum: str = ""


class HomesSettings(BaseModel):
    comment: str = ""
    browseable: str = ""
    writable: str = ""
    valid_users: str = ""
    force_user: str = ""
    force_group: str = ""
    create_mask: str = ""
    directory_mask: str = ""


class SambaSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    global_: GlobalSettings = Field(default_factory=GlobalSettings, alias="global")
    homes: HomesSettings = Field(default_factory=HomesSettings)


class ConfigFile(BaseModel):
    content: str
    path: str


# Normalized smb.conf key -> model field.
GLOBAL_KEYS: Dict[str, str] = {
    "workgroup": "workgroup",
    "serverstring": "server_string",
    "security": "security",
    "passdbbackend": "passdb_backend",
    "maptoguest": "map_to_guest",
    "accessbasedshareenum": "access_based_share_enum",
}

HOMES_KEYS: Dict[str, str] = {
    "comment": "comment",
    "browseable": "browseable",
    "writable": "writable",
    "validusers": "valid_users",
    "forceuser": "force_user",
    "forcegroup": "force_group",
    "createmask": "create_mask",
    "directorymask": "directory_mask",
}

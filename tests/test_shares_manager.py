import pytest

from sambadmin.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from sambadmin.shares.manager import ShareManager
from sambadmin.shares.models import ShareCreate, ShareUpdate
from sambadmin.smbconf.document import parse

from conftest import SAMPLE_SMB_CONF


@pytest.fixture
def manager(context, make_home):
    make_home("alice", "bob", "carol")
    return ShareManager(context)


def test_create_share_with_custom_name(manager, smb_conf, home_root, port):
    share_id = manager.create_share(ShareCreate(owner="alice", name="Docs", shared_with=["bob"], comment="team"))

    assert share_id == "alice-share-Docs"
    assert smb_conf.read_text() == SAMPLE_SMB_CONF + (
        "\n"
        "[alice-share-Docs]\n"
        f"  path = {home_root / 'alice'}\n"
        "  browseable = yes\n"
        "  valid users = bob\n"
        "  force user = root\n"
        "  force group = root\n"
        "  read only = no\n"
        "  writable = yes\n"
        "  comment = team\n"
    )
    assert port.call_names() == ["reload_service"]


def test_create_share_same_name_twice_conflicts(manager, smb_conf):
    manager.create_share(ShareCreate(owner="alice", name="Docs", shared_with=["bob"]))
    before = smb_conf.read_text()

    with pytest.raises(ConflictError):
        manager.create_share(ShareCreate(owner="alice", name="Docs", shared_with=["carol"]))
    assert smb_conf.read_text() == before


def test_create_share_timestamp_id_collision(manager, smb_conf):
    first = manager.create_share(ShareCreate(owner="alice", shared_with=["bob"]))
    assert first == "alice-share-20240517093015"
    before = smb_conf.read_text()

    with pytest.raises(ConflictError):
        manager.create_share(ShareCreate(owner="alice", shared_with=["carol"], read_only=True))

    assert smb_conf.read_text() == before
    assert manager.get_share(first).shared_with == ["bob"]


def test_create_share_with_subpath(manager, home_root, port):
    share_id = manager.create_share(ShareCreate(owner="alice", name="Photos", shared_with=["bob"], sub_path="/pics/2024/"))

    expected = str(home_root / "alice" / "pics" / "2024")
    assert ("create_directory", expected) in port.calls
    record = manager.get_share(share_id)
    assert record.path == expected
    assert record.sub_path == "pics/2024"
    assert (home_root / "alice" / "pics" / "2024").is_dir()


def test_create_share_rejects_traversal_before_any_change(manager, smb_conf, port):
    with pytest.raises(ValidationError):
        manager.create_share(ShareCreate(owner="alice", shared_with=["bob"], sub_path="a/../../b"))
    assert smb_conf.read_text() == SAMPLE_SMB_CONF
    assert port.calls == []


@pytest.mark.parametrize("request_kwargs", [
    {"owner": "alice", "shared_with": ["alice"]},
    {"owner": "alice", "shared_with": []},
    {"owner": "alice", "shared_with": ["bad user"]},
    {"owner": "al ice", "shared_with": ["bob"]},
    {"owner": "alice", "name": "bad-name", "shared_with": ["bob"]},
    {"owner": "alice", "shared_with": ["bob"], "comment": "line\n[global]"},
])
def test_create_share_invalid_requests(manager, request_kwargs):
    with pytest.raises(ValidationError):
        manager.create_share(ShareCreate(**request_kwargs))


def test_create_share_requires_home(manager):
    with pytest.raises(NotFoundError):
        manager.create_share(ShareCreate(owner="dave", shared_with=["bob"]))


def test_owner_is_dropped_from_shared_with(manager):
    share_id = manager.create_share(ShareCreate(owner="alice", name="x", shared_with=["alice", "bob", "bob"]))
    assert manager.get_share(share_id).shared_with == ["bob"]


def test_list_shares_filters(manager):
    manager.create_share(ShareCreate(owner="alice", name="one", shared_with=["bob"], comment="Holiday pictures"))
    manager.create_share(ShareCreate(owner="bob", name="two", shared_with=["alice"]))

    assert [s.id for s in manager.list_shares()] == ["alice-share-one", "bob-share-two"]
    assert [s.id for s in manager.list_shares(owner="bob")] == ["bob-share-two"]
    assert [s.id for s in manager.list_shares(search="holiday")] == ["alice-share-one"]


def test_record_from_handwritten_section(manager, home_root):
    document = parse(
        "[alice-share-old]\n"
        f"path = {home_root / 'alice' / 'music'}\n"
        "Valid Users = bob carol\n"
        "writeable = no\n"
    )
    record = manager.record_from_section(document.find("alice-share-old"))
    assert record.owner == "alice"
    assert record.sub_path == "music"
    assert record.shared_with == ["bob", "carol"]
    assert record.read_only is True


def test_get_share_not_found(manager):
    with pytest.raises(NotFoundError):
        manager.get_share("alice-share-missing")
    with pytest.raises(NotFoundError):
        manager.get_share("homes")


def test_update_share(manager):
    share_id = manager.create_share(ShareCreate(owner="alice", name="Docs", shared_with=["bob"]))

    record = manager.update_share(share_id, ShareUpdate(shared_with=["carol"], read_only=True), acting_user="alice")

    assert record.owner == "alice"
    assert record.shared_with == ["carol"]
    assert record.read_only is True
    assert manager.get_share(share_id) == record


def test_update_share_by_other_user_is_forbidden(manager, smb_conf):
    share_id = manager.create_share(ShareCreate(owner="alice", name="Docs", shared_with=["bob"]))
    before = smb_conf.read_text()

    with pytest.raises(ForbiddenError):
        manager.update_share(share_id, ShareUpdate(shared_with=["carol"]), acting_user="bob")
    with pytest.raises(ForbiddenError):
        manager.delete_share(share_id, acting_user="bob")
    assert smb_conf.read_text() == before


def test_delete_share(manager, smb_conf):
    share_id = manager.create_share(ShareCreate(owner="alice", name="Docs", shared_with=["bob"]))
    manager.delete_share(share_id)
    assert smb_conf.read_text() == SAMPLE_SMB_CONF + "\n"

    with pytest.raises(NotFoundError):
        manager.delete_share(share_id)


def test_delete_refuses_non_share_sections(manager, smb_conf):
    with pytest.raises(ValidationError):
        manager.delete_share("global")
    assert smb_conf.read_text() == SAMPLE_SMB_CONF


def test_user_removal_plan(manager):
    manager.create_share(ShareCreate(owner="alice", name="1", shared_with=["bob"]))
    manager.create_share(ShareCreate(owner="bob", name="1", shared_with=["alice", "carol"]))
    manager.create_share(ShareCreate(owner="bob", name="2", shared_with=["alice"]))

    document = manager.read_document()
    plan = manager.plan_user_removal(document, "alice")

    assert sorted(plan.delete) == ["alice-share-1", "bob-share-2"]
    assert list(plan.update) == ["bob-share-1"]
    assert plan.update["bob-share-1"].shared_with == ["carol"]

    assert manager.apply_removal_plan(document, plan) is True
    assert [s.id for s in manager.list_shares()] == ["bob-share-1"]
    assert manager.get_share("bob-share-1").shared_with == ["carol"]


def test_empty_removal_plan_writes_nothing(manager, smb_conf):
    document = manager.read_document()
    plan = manager.plan_user_removal(document, "nobody")
    assert plan.is_empty()
    assert manager.apply_removal_plan(document, plan) is False
    assert smb_conf.read_text() == SAMPLE_SMB_CONF


def test_create_share_rejects_multiline_subpath(manager, smb_conf, port):
    with pytest.raises(ValidationError):
        manager.create_share(ShareCreate(owner="alice", name="x", shared_with=["bob"], sub_path="a\n  path = /etc"))
    assert smb_conf.read_text() == SAMPLE_SMB_CONF
    assert port.calls == []

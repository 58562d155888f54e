import threading

import pytest

from sambadmin.errors import ConfigValidationError, QueueShutdownError
from sambadmin.service import SambaService
from sambadmin.shares.models import ShareCreate
from sambadmin.system.commands import CommandResult

from conftest import SAMPLE_SMB_CONF


@pytest.fixture
def service(context):
    with SambaService(context=context) as service:
        yield service


def test_concurrent_creates_all_land(service, smb_conf, make_home):
    make_home("alice", "bob")
    smb_conf.write_text("")
    errors = []

    def create(i):
        try:
            service.create_share(ShareCreate(owner="alice", name=f"s{i}", shared_with=["bob"]))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=create, args=(i,)) for i in range(25)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    shares = service.list_shares(owner="alice")
    assert sorted(s.id for s in shares) == sorted(f"alice-share-s{i}" for i in range(25))
    assert all(s.shared_with == ["bob"] and s.path for s in shares)
    assert smb_conf.read_text().count("[alice-share-") == 25


def test_account_lifecycle_through_service(service, port, home_root):
    account = service.provision_account("alice", "pw")
    assert account.home_dir == str(home_root / "alice")
    assert service.account_exists("alice") is True
    assert [a.username for a in service.list_accounts()] == ["alice"]

    service.change_own_password("alice", "pw", "pw2")
    assert port.accounts["alice"] == "pw2"

    service.deprovision_account("alice")
    assert service.account_exists("alice") is False
    assert service.list_orphaned_directories() == []


def test_raw_replace_error_propagates_through_queue(service, port, smb_conf):
    port.validate_result = CommandResult(tool="testparm", args=[], returncode=1, stderr="bad")
    with pytest.raises(ConfigValidationError):
        service.replace_raw_config("garbage")
    assert service.get_raw_config().content == SAMPLE_SMB_CONF


def test_settings_round_trip(service):
    settings = service.get_settings()
    settings.global_.workgroup = "LAN"
    assert service.update_settings(global_=settings.global_) >= 1
    assert service.get_settings().global_.workgroup == "LAN"


def test_closed_service_rejects_writes(context, make_home):
    make_home("alice")
    service = SambaService(context=context)
    service.close()
    with pytest.raises(QueueShutdownError):
        service.create_share(ShareCreate(owner="alice", shared_with=["bob"]))
    assert service.list_shares() == []

import pytest
from marketplace.directory import get_directory, reset_directory
from marketplace.notification.channel import get_notifier, reset_notifier
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()


@pytest.fixture(autouse=True)
def _adapters():
    """Fresh collaborator directory and notifier for every test."""
    reset_directory()
    reset_notifier()
    yield
    reset_directory()
    reset_notifier()


@pytest.fixture()
def directory():
    """Directory seeded with two vendors, their staff, a client and an admin.

    - vendor-a "Chez Awa" delivers directly, same day included.
    - vendor-b "Boutique Bintou" only goes through the depot.
    - the platform supermarket-delivery fee is a fixed 2000.
    """
    d = get_directory()
    d.add_vendor("vendor-a", "Chez Awa", direct_delivery=True, same_day_delivery=True)
    d.add_vendor("vendor-b", "Boutique Bintou")
    d.add_staff("vendor-a", "staff-a1", token="token-staff-a1")
    d.add_staff("vendor-a", "staff-a2", token="token-staff-a2")
    d.add_staff("vendor-b", "staff-b1", token="token-staff-b1")
    d.add_client(
        "client-1",
        first_name="Fatou",
        last_name="Diop",
        email="fatou@example.com",
        phone="+221770000001",
        token="token-client-1",
    )
    d.add_client("client-2", first_name="Moussa", last_name="Ndiaye", token="token-client-2")
    d.add_admin("admin-1", token="token-admin-1")
    d.add_fee_rule(None, "fixed", 2000)
    return d


@pytest.fixture()
def notifier():
    return get_notifier()

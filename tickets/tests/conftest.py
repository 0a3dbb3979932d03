# tickets/tests/conftest.py
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.core.files.storage import FileSystemStorage
from rest_framework.test import APIClient

from tickets.models import Technician
from tickets.services.payloads import TicketDraft
from tickets.services.ticket_store import TicketStore
from tickets.tests.factories import make_image


@pytest.fixture
def user_factory(db):
    def _make(username: str, perms=("view", "add", "change")):
        User = get_user_model()
        u = User.objects.create(username=username)
        codenames = [f"{p}_serviceticket" for p in perms]
        u.user_permissions.add(
            *Permission.objects.filter(
                content_type__app_label="tickets", codename__in=codenames
            )
        )
        # permission cache is filled lazily; refetch to be safe
        return User.objects.get(pk=u.pk)

    return _make


@pytest.fixture
def staff_user(user_factory):
    return user_factory("dispatcher")


@pytest.fixture
def viewer_user(user_factory):
    return user_factory("viewer", perms=("view",))


@pytest.fixture
def store(db):
    store = TicketStore().open()
    yield store
    store.close()


@pytest.fixture
def technician(db):
    return Technician.objects.create(name="John Doe")


@pytest.fixture
def draft_factory():
    def _make(**overrides):
        data = dict(
            customer_name="Asha Rao",
            phone="9876543210",
            product_category="Water Purifier",
            city="Pune",
        )
        data.update(overrides)
        return TicketDraft(**data)

    return _make


@pytest.fixture
def media_storage(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path)
    return FileSystemStorage(location=str(tmp_path), base_url="/media/")


@pytest.fixture
def png_bytes():
    return make_image()


@pytest.fixture
def api_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client

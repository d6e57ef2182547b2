"""Tests for Blob content, emptiness, URLs, cloning and comparison."""

from __future__ import annotations

from pathlib import Path

import pytest

from tether.binder import AttachmentBinder
from tether.blob import EMPTY_FILE, Blob
from tether.database import InMemoryDatabase
from tether.entities import BlobField, Entity, KeyStrategy
from tether.errors import ContentDecodeError, InvalidArgumentError, InvalidStateError
from tether.storage.memory import InMemoryBlobStorage
from tether.storage.registry import ProviderRegistry


class Invoice(Entity, key_strategy=KeyStrategy.GENERATED):
    attachment = BlobField()


class Customer(Entity, key_strategy=KeyStrategy.ASSIGNED):
    photo = BlobField()


class TestNames:
    """Tests for file name derived properties."""

    def test_file_name_is_sanitized(self) -> None:
        blob = Blob(b"x", "../uploads/my:report.pdf")

        assert blob.file_name == "my-report.pdf"
        assert blob.file_extension == ".pdf"
        assert blob.file_name_without_extension == "my-report"

    def test_file_name_setter_sanitizes(self) -> None:
        blob = Blob(b"x", "a.txt")
        blob.file_name = "dir/b?.png"

        assert blob.file_name == "b-.png"

    def test_no_file_name_is_sentinel(self) -> None:
        blob = Blob()

        assert blob.file_name == EMPTY_FILE
        assert blob.file_extension == ""
        assert blob.file_name_without_extension == EMPTY_FILE

    def test_mime_type(self) -> None:
        assert Blob(b"x", "scan.pdf").mime_type == "application/pdf"
        assert Blob(b"x", "noext").mime_type == "application/octet-stream"

    def test_is_media(self) -> None:
        assert Blob(b"x", "clip.mp4").is_media() is True
        assert Blob(b"x", "song.mp3").is_media() is True
        assert Blob(b"x", "photo.jpg").is_media() is False

    def test_has_unsafe_extension(self) -> None:
        assert Blob(b"x", "setup.exe").has_unsafe_extension() is True
        assert Blob(b"x", "photo.jpg").has_unsafe_extension() is False

    def test_folder_name(self, binder: AttachmentBinder) -> None:
        detached = Blob(b"x", "a.pdf")
        invoice = Invoice(binder=binder)
        invoice.attachment = Blob(b"x", "a.pdf")

        assert detached.folder_name is None
        assert invoice.attachment.folder_name == "Invoice.attachment"
        assert invoice.attachment.folder_name == "Invoice.attachment"

        invoice.attachment.folder_name = "Shared"
        assert invoice.attachment.folder_name == "Shared"


class TestIsEmpty:
    """Tests for emptiness and the existence probe."""

    @pytest.mark.asyncio
    async def test_empty_marker(self, memory_storage: InMemoryBlobStorage) -> None:
        blob = Blob.empty()

        assert blob.is_empty_marker is True
        assert await blob.is_empty() is True
        assert memory_storage.calls["exists"] == 0

    @pytest.mark.asyncio
    async def test_sentinel_file_name(self) -> None:
        assert await Blob().is_empty() is True
        assert await Blob(b"data", EMPTY_FILE).is_empty() is True

    @pytest.mark.asyncio
    async def test_zero_length_content(self) -> None:
        assert await Blob(b"", "a.txt").is_empty() is True

    @pytest.mark.asyncio
    async def test_in_memory_content_skips_provider(
        self, registry: ProviderRegistry, memory_storage: InMemoryBlobStorage
    ) -> None:
        blob = Blob(b"abc", "a.txt", providers=registry)

        assert await blob.is_empty() is False
        assert await blob.has_value() is True
        assert memory_storage.calls["exists"] == 0

    @pytest.mark.asyncio
    async def test_unloaded_content_probes_provider(
        self, binder: AttachmentBinder, memory_storage: InMemoryBlobStorage
    ) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(None, "me.png")

        assert await customer.photo.is_empty() is True
        assert memory_storage.calls["exists"] == 1

    @pytest.mark.asyncio
    async def test_confirmed_existence_is_cached(
        self, binder: AttachmentBinder, memory_storage: InMemoryBlobStorage
    ) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(b"pixels", "me.png")
        await memory_storage.save(customer.photo)
        customer.photo = Blob(None, "me.png")

        assert await customer.photo.is_empty() is False
        assert await customer.photo.is_empty() is False
        assert memory_storage.calls["exists"] == 1

    @pytest.mark.asyncio
    async def test_expensive_provider_is_not_probed(self) -> None:
        storage = InMemoryBlobStorage(expensive_existence=True)
        customer = Customer("c-1", binder=AttachmentBinder(ProviderRegistry(default=storage)))
        customer.photo = Blob(None, "me.png")

        assert await customer.photo.is_empty() is False
        assert storage.calls["exists"] == 0


class TestContent:
    """Tests for reading and writing content."""

    @pytest.mark.parametrize("data", [None, b""])
    def test_set_content_rejects_empty(self, data: bytes | None) -> None:
        with pytest.raises(InvalidArgumentError):
            Blob(b"x", "a.txt").set_content(data)

    @pytest.mark.asyncio
    async def test_set_content_then_get_without_provider(
        self, binder: AttachmentBinder, memory_storage: InMemoryBlobStorage
    ) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(None, "me.png")

        customer.photo.set_content(b"new pixels")

        assert await customer.photo.get_content() == b"new pixels"
        assert memory_storage.calls == {"load": 0, "save": 0, "delete": 0, "exists": 0}

    @pytest.mark.asyncio
    async def test_roundtrip_through_owner_save(
        self,
        binder: AttachmentBinder,
        database: InMemoryDatabase,
        memory_storage: InMemoryBlobStorage,
    ) -> None:
        """Saved content is reloaded from the provider after eviction."""
        invoice = Invoice(binder=binder)
        invoice.attachment = Blob(b"%PDF-1.7", "invoice.pdf")

        await database.save(invoice)
        invoice.attachment.unload()

        assert invoice.attachment.raw_data is None
        assert await invoice.attachment.is_empty() is False
        assert await invoice.attachment.get_content() == b"%PDF-1.7"
        assert memory_storage.objects == {"Invoice.attachment/1.pdf": b"%PDF-1.7"}
        assert memory_storage.calls["load"] == 1

    @pytest.mark.asyncio
    async def test_get_content_of_empty_blob(self) -> None:
        assert await Blob.empty().get_content() == b""

    @pytest.mark.asyncio
    async def test_get_content_text(self) -> None:
        assert await Blob("héllo".encode(), "a.txt").get_content_text() == "héllo"
        assert await Blob("héllo".encode("latin-1"), "a.txt").get_content_text("latin-1") == "héllo"
        assert await Blob.empty().get_content_text() == ""

    @pytest.mark.asyncio
    async def test_get_content_text_decode_failure(self, binder: AttachmentBinder) -> None:
        customer = Customer("c-7", binder=binder)
        customer.photo = Blob(b"\xff\xfe\x00binary", "me.png")

        with pytest.raises(ContentDecodeError) as exc_info:
            await customer.photo.get_content_text()

        error = exc_info.value
        assert (error.owner_type, error.owner_id, error.property_name) == ("Customer", "c-7", "photo")
        assert isinstance(error.__cause__, UnicodeDecodeError)

    @pytest.mark.asyncio
    async def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_bytes(b"remember")

        blob = await Blob.from_file(path)

        assert blob.file_name == "notes.txt"
        assert blob.raw_data == b"remember"
        assert blob.owner is None


class TestSaveAndDelete:
    """Tests for explicit save and delete."""

    @pytest.mark.asyncio
    async def test_delete_detached_fails(self) -> None:
        with pytest.raises(InvalidStateError):
            await Blob(b"x", "a.txt").delete()

    @pytest.mark.asyncio
    async def test_delete_clears_content(
        self, binder: AttachmentBinder, memory_storage: InMemoryBlobStorage
    ) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(b"pixels", "me.png")
        await customer.photo.save()

        await customer.photo.delete()

        assert customer.photo.raw_data is None
        assert memory_storage.objects == {}
        assert await customer.photo.is_empty() is True

    @pytest.mark.asyncio
    async def test_delete_twice_reaches_provider_each_time(
        self, binder: AttachmentBinder, memory_storage: InMemoryBlobStorage
    ) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(b"pixels", "me.png")

        await customer.photo.delete()
        await customer.photo.delete()

        assert memory_storage.calls["delete"] == 2

    @pytest.mark.asyncio
    async def test_save_without_content_does_nothing(
        self, binder: AttachmentBinder, memory_storage: InMemoryBlobStorage
    ) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(None, "me.png")

        await customer.photo.save()

        assert memory_storage.calls["save"] == 0
        assert memory_storage.calls["delete"] == 0

    @pytest.mark.asyncio
    async def test_save_empty_marker_deletes(
        self, binder: AttachmentBinder, memory_storage: InMemoryBlobStorage
    ) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(b"pixels", "me.png")
        await customer.photo.save()

        customer.photo = None
        await customer.photo.save()

        assert customer.photo.is_empty_marker is True
        assert memory_storage.objects == {}

    @pytest.mark.asyncio
    async def test_provider_errors_propagate(self) -> None:
        class FailingStorage(InMemoryBlobStorage):
            async def save(self, blob: Blob) -> None:
                raise OSError("disk full")

        customer = Customer("c-1", binder=AttachmentBinder(ProviderRegistry(default=FailingStorage())))
        customer.photo = Blob(b"pixels", "me.png")

        with pytest.raises(OSError, match="disk full"):
            await customer.photo.save()


class TestClone:
    """Tests for clone."""

    @pytest.mark.asyncio
    async def test_readonly_requires_attach(self) -> None:
        with pytest.raises(InvalidArgumentError):
            await Blob(b"x", "a.txt").clone(attach=False, readonly=True)

    @pytest.mark.asyncio
    async def test_detached_clone_copies_buffer(self) -> None:
        source = Blob(b"abc", "a.txt")

        copy = await source.clone()
        copy.set_content(b"changed")

        assert copy is not source
        assert copy.file_name == "a.txt"
        assert source.raw_data == b"abc"

    @pytest.mark.asyncio
    async def test_clone_loads_content_from_provider(
        self, binder: AttachmentBinder, memory_storage: InMemoryBlobStorage
    ) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(b"pixels", "me.png")
        await customer.photo.save()
        customer.photo.unload()

        copy = await customer.photo.clone()

        assert copy.raw_data == b"pixels"
        assert copy.owner is None
        assert memory_storage.calls["load"] == 1

    @pytest.mark.asyncio
    async def test_attached_clone_takes_over_binding(self, binder: AttachmentBinder) -> None:
        customer = Customer("c-1", binder=binder)
        source = customer.photo = Blob(b"pixels", "me.png")

        copy = await source.clone(attach=True)

        assert source.is_attached is False
        assert copy.is_attached is True
        assert copy.owner is customer
        assert copy.owner_property == "photo"
        assert len(customer.saving) == 1
        assert len(customer.deleting) == 1
        assert customer.photo is copy

    @pytest.mark.asyncio
    async def test_attached_clone_is_replaced_cleanly(
        self,
        binder: AttachmentBinder,
        database: InMemoryDatabase,
        memory_storage: InMemoryBlobStorage,
    ) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(b"old", "a.png")
        copy = await customer.photo.clone(attach=True)

        customer.photo = Blob(b"new", "b.png")
        await database.save(customer)
        await database.delete(customer)

        assert copy.is_attached is False
        assert memory_storage.calls["save"] == 1
        assert memory_storage.calls["delete"] == 1
        assert memory_storage.objects == {}

    @pytest.mark.asyncio
    async def test_detached_clone_keeps_folder_override(self) -> None:
        source = Blob(b"abc", "a.txt")
        source.folder_name = "Shared"

        copy = await source.clone()

        assert copy.folder_name == "Shared"

        assert len(customer.deleting) == 1

    @pytest.mark.asyncio
    async def test_readonly_clone_is_not_subscribed(self, binder: AttachmentBinder) -> None:
        customer = Customer("c-1", binder=binder)
        source = customer.photo = Blob(b"pixels", "me.png")

        copy = await source.clone(attach=True, readonly=True)

        assert copy.owner is customer
        assert copy.is_attached is False
        assert copy.url() == "/files/Customer.photo/c-1.png"
        assert source.is_attached is True
        assert len(customer.saving) == 1

    @pytest.mark.asyncio
    async def test_readonly_clone_cannot_hand_on_binding(self, binder: AttachmentBinder) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(b"pixels", "me.png")
        readonly = await customer.photo.clone(attach=True, readonly=True)

        with pytest.raises(InvalidStateError):
            await readonly.clone(attach=True)

    @pytest.mark.asyncio
    async def test_or(self) -> None:
        fallback = Blob(b"fallback", "f.txt")
        present = Blob(b"here", "h.txt")

        assert await Blob.empty().or_(fallback) is fallback
        assert await present.or_(fallback) is present


class TestUrls:
    """Tests for URL composition."""

    @pytest.mark.asyncio
    async def test_url_after_save(self, binder: AttachmentBinder, database: InMemoryDatabase) -> None:
        invoice = Invoice(binder=binder)
        invoice.attachment = Blob(b"%PDF", "invoice.pdf")
        await database.save(invoice)

        assert invoice.attachment.url() == "/files/Invoice.attachment/1.pdf"
        assert str(invoice.attachment) == "/files/Invoice.attachment/1.pdf"
        assert await invoice.attachment.url_or("/img/none.png") == "/files/Invoice.attachment/1.pdf"

    @pytest.mark.asyncio
    async def test_detached_url_is_none(self) -> None:
        blob = Blob(b"x", "a.pdf")

        assert blob.url() is None
        assert blob.cache_safe_url() is None
        assert str(blob) == ""

    @pytest.mark.asyncio
    async def test_url_or_default_when_empty(self, binder: AttachmentBinder) -> None:
        customer = Customer("c-1", binder=binder)

        assert await customer.photo.url_or("/img/none.png") == "/img/none.png"

    def test_cache_safe_url(self, binder: AttachmentBinder) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(b"x", "me.png")

        first = customer.photo.cache_safe_url()
        second = customer.photo.cache_safe_url()

        assert first is not None and first.startswith("/files/Customer.photo/c-1.png?RANDOM=")
        assert first != second

    def test_cache_safe_url_with_query(self, registry: ProviderRegistry) -> None:
        binder = AttachmentBinder(registry, base_url="/download?path=")
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(b"x", "me.png")

        url = customer.photo.cache_safe_url()

        assert url is not None and url.startswith("/download?path=Customer.photo/c-1.png&RANDOM=")

    @pytest.mark.asyncio
    async def test_reference(self, binder: AttachmentBinder, database: InMemoryDatabase) -> None:
        invoice = Invoice(binder=binder)
        invoice.attachment = Blob(b"%PDF", "invoice.pdf")

        assert invoice.attachment.reference() is None

        await database.save(invoice)

        assert invoice.attachment.reference() == "Invoice/1/attachment"


class TestComparison:
    """Tests for equality and ordering."""

    def test_distinct_empty_blobs_are_equal(self) -> None:
        assert Blob.empty() == Blob.empty()
        assert Blob.empty() == Blob()
        assert Blob(b"", "a.txt") == Blob.empty()

    def test_non_empty_blobs_compare_by_identity(self) -> None:
        first = Blob(b"same", "a.txt")
        second = Blob(b"same", "a.txt")

        assert first == first
        assert first != second
        assert first != Blob.empty()

    def test_not_hashable(self) -> None:
        with pytest.raises(TypeError):
            hash(Blob.empty())

    @pytest.mark.asyncio
    async def test_equals_probes_provider(self, binder: AttachmentBinder) -> None:
        customer = Customer("c-1", binder=binder)
        customer.photo = Blob(None, "me.png")

        assert (customer.photo == Blob.empty()) is False
        assert await customer.photo.equals(Blob.empty()) is True
        assert await Blob(b"x", "a.txt").equals(Blob.empty()) is False
        assert await Blob.empty().equals(None) is False

    @pytest.mark.asyncio
    async def test_compare_to(self) -> None:
        empty = Blob.empty()
        small = Blob(b"ab", "a.txt")
        large = Blob(b"abcd", "b.txt")

        assert await empty.compare_to(None) == 1
        assert await empty.compare_to(Blob()) == 0
        assert await empty.compare_to(small) == -1
        assert await small.compare_to(empty) == 1
        assert await small.compare_to(large) == -1
        assert await large.compare_to(small) == 1
        assert await small.compare_to(Blob(b"cd", "c.txt")) == 0

"""
Slide extraction and deck management tests
"""
import pytest
from conftest import make_pdf, make_png

from baseline import db, slides
from baseline.errors import PdfRenderError, SlideExtractionError, SlideNotFoundError, StorageError
from baseline.models import PitchDeckSettings, Slide


class TestExtraction:
    def test_extracts_one_slide_per_page(self, app_ctx, storage):
        result = slides.extract_deck(make_pdf(3), storage, scale=1.0)

        assert result.pages_total == 3
        assert result.slides_extracted == 3
        assert result.failed_pages == []

        deck = slides.list_slides()
        assert [s.slide_number for s in deck] == [1, 2, 3]
        assert [s.display_order for s in deck] == [1, 2, 3]
        assert all(s.is_active for s in deck)
        assert len(storage.objects) == 3
        data, content_type = storage.objects[deck[0].storage_path]
        assert content_type == 'image/png'
        assert data.startswith(b'\x89PNG')

    def test_failed_page_is_skipped_not_renumbered(self, app_ctx, storage):
        """Page 3 fails to upload; pages 1, 2, 4 and 5 keep their numbers"""
        storage.fail_on = 'slide-3-'

        result = slides.extract_deck(make_pdf(5), storage, scale=1.0)

        assert result.slides_extracted == 4
        assert result.failed_pages == [3]
        assert Slide.query.count() == 4
        assert {s.slide_number for s in Slide.query.all()} == {1, 2, 4, 5}

    def test_new_upload_replaces_deck(self, app_ctx, storage):
        slides.extract_deck(make_pdf(4), storage, scale=1.0)
        old_paths = {s.storage_path for s in Slide.query.all()}

        slides.extract_deck(make_pdf(2), storage, scale=1.0)

        assert Slide.query.count() == 2
        assert set(storage.deleted) == old_paths
        assert not old_paths & {s.storage_path for s in Slide.query.all()}

    def test_nothing_extracted_keeps_old_deck(self, app_ctx, storage):
        slides.extract_deck(make_pdf(2), storage, scale=1.0)
        storage.fail_on = 'slides/'

        with pytest.raises(SlideExtractionError):
            slides.extract_deck(make_pdf(3), storage, scale=1.0)

        assert Slide.query.count() == 2
        assert storage.deleted == []

    def test_unreadable_pdf(self, app_ctx, storage):
        with pytest.raises(PdfRenderError):
            slides.extract_deck(b'%PDF-not really', storage)
        assert Slide.query.count() == 0

    def test_old_objects_cleanup_failure_is_tolerated(self, app_ctx, storage):
        slides.extract_deck(make_pdf(2), storage, scale=1.0)
        storage.fail_deletes = True

        result = slides.extract_deck(make_pdf(3), storage, scale=1.0)

        assert result.slides_extracted == 3
        assert Slide.query.count() == 3


class TestPerPageUpload:
    def test_clear_then_add(self, app_ctx, storage):
        slides.extract_deck(make_pdf(3), storage, scale=1.0)

        assert slides.clear_deck(storage) == 3
        slide = slides.add_slide(1, make_png(), storage)

        assert Slide.query.count() == 1
        assert slide.slide_number == 1
        assert slide.display_order == 1
        assert slide.image_url.endswith('.png')

    def test_add_slide_upload_failure(self, app_ctx, storage):
        storage.fail_on = 'slide-2-'

        with pytest.raises(StorageError):
            slides.add_slide(2, make_png(), storage)
        assert Slide.query.count() == 0


class TestDeckManagement:
    @pytest.fixture
    def deck(self, app_ctx, storage):
        slides.extract_deck(make_pdf(4), storage, scale=1.0)
        return [s.id for s in slides.list_slides()]

    def test_reorder_by_ids(self, deck):
        new_order = [deck[2], deck[0], deck[3], deck[1]]

        slides.reorder_by_ids(new_order)

        listed = slides.list_slides()
        assert [s.id for s in listed] == new_order
        assert [s.display_order for s in listed] == [1, 2, 3, 4]
        assert [s.slide_number for s in listed] == [3, 1, 4, 2]

    def test_reorder_unknown_id_rejected(self, deck):
        with pytest.raises(SlideNotFoundError):
            slides.reorder([(deck[0], 2), ('missing', 1)])

        assert [s.id for s in slides.list_slides()] == deck

    def test_set_active_hides_slide(self, deck):
        slides.set_active(deck[1], False)

        assert len(slides.list_slides()) == 3
        assert len(slides.list_slides(include_inactive=True)) == 4

    def test_delete_slide(self, deck, storage):
        path = db.session.get(Slide, deck[0]).storage_path

        slides.delete_slide(deck[0], storage)

        assert Slide.query.count() == 3
        assert path in storage.deleted

    def test_delete_unknown_slide(self, deck):
        with pytest.raises(SlideNotFoundError):
            slides.delete_slide('missing')

    def test_update_size(self, app_ctx):
        settings = slides.update_size('wide')

        assert settings.slide_size == 'wide'
        assert PitchDeckSettings.query.count() == 1

    def test_update_size_invalid(self, app_ctx):
        with pytest.raises(ValueError):
            slides.update_size('huge')

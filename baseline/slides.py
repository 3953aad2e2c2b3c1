"""
Pitch deck slides: PDF extraction and the ordering/visibility operations.

Pages are processed strictly in page order. A page that fails to render or
upload is logged and skipped; its page number is not reused, so the remaining
slides keep their original numbers.

Replacing the deck is all-or-nothing on the database side: the old rows are
deleted and the new rows inserted in one transaction. Old storage objects are
removed only after that transaction commits, and their removal is best-effort.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from baseline import db
from baseline.errors import SlideExtractionError, SlideNotFoundError
from baseline.models import PitchDeckSettings, Slide, SlideSize
from baseline.services.pdf_service import RENDER_SCALE, open_pdf, render_page_png
from baseline.services.storage_service import ObjectStorage, slide_object_name

logger = logging.getLogger(__name__)


@dataclass
class UploadedPage:
    page_number: int
    storage_path: str
    image_url: str


@dataclass
class ExtractionResult:
    pages_total: int
    slides: List[Slide] = field(default_factory=list)
    failed_pages: List[int] = field(default_factory=list)

    @property
    def slides_extracted(self) -> int:
        return len(self.slides)


def _remove_objects(storage: ObjectStorage, paths: Iterable[str]) -> None:
    paths = list(paths)
    if not paths:
        return
    try:
        failed = storage.delete(paths)
    except Exception:
        logger.exception("Slide object cleanup raised")
        return
    if failed:
        logger.warning("Could not delete %d slide objects: %s", len(failed), ", ".join(failed))


def upload_pages(pdf_bytes: bytes, storage: ObjectStorage, scale: float = RENDER_SCALE) -> Tuple[int, List[UploadedPage], List[int]]:
    """Render and upload every page in order, skipping pages that fail"""
    doc = open_pdf(pdf_bytes)
    uploaded: List[UploadedPage] = []
    failed: List[int] = []
    try:
        total = doc.page_count
        for index in range(total):
            page_number = index + 1
            try:
                png = render_page_png(doc, index, scale)
                key = slide_object_name(page_number)
                url = storage.upload(key, png, "image/png")
            except Exception:
                logger.exception("Failed to extract slide %d of %d", page_number, total)
                failed.append(page_number)
                continue
            uploaded.append(UploadedPage(page_number=page_number, storage_path=key, image_url=url))
    finally:
        doc.close()
    return total, uploaded, failed


def replace_deck(pages: Sequence[UploadedPage], storage: ObjectStorage) -> List[Slide]:
    """Swap the whole slide set for ``pages`` in a single transaction"""
    try:
        old_paths = [path for (path,) in db.session.query(Slide.storage_path).all()]
        Slide.query.delete(synchronize_session=False)
        slides = []
        for page in pages:
            slide = Slide(
                slide_number=page.page_number,
                display_order=page.page_number,
                image_url=page.image_url,
                storage_path=page.storage_path,
                is_active=True,
            )
            db.session.add(slide)
            slides.append(slide)
        db.session.commit()
    except Exception:
        db.session.rollback()
        _remove_objects(storage, (p.storage_path for p in pages))
        raise

    _remove_objects(storage, old_paths)
    return slides


def extract_deck(pdf_bytes: bytes, storage: ObjectStorage, scale: float = RENDER_SCALE) -> ExtractionResult:
    """
    Convert a PDF into the current deck, one PNG slide per page.

    Raises PdfRenderError when the document cannot be opened and
    SlideExtractionError when no page could be converted; the existing deck
    is left untouched in both cases.
    """
    total, uploaded, failed = upload_pages(pdf_bytes, storage, scale)
    if not uploaded:
        raise SlideExtractionError(f"None of {total} pages could be extracted")

    slides = replace_deck(uploaded, storage)
    logger.info("Extracted %d of %d slides", len(slides), total)
    return ExtractionResult(pages_total=total, slides=slides, failed_pages=failed)


def clear_deck(storage: ObjectStorage) -> int:
    """Delete every slide row (committed), then their objects. Returns rows removed."""
    try:
        old_paths = [path for (path,) in db.session.query(Slide.storage_path).all()]
        removed = Slide.query.delete(synchronize_session=False)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    _remove_objects(storage, old_paths)
    return removed


def add_slide(page_number: int, png: bytes, storage: ObjectStorage) -> Slide:
    """Store one page rendered by the caller as an active slide"""
    key = slide_object_name(page_number)
    url = storage.upload(key, png, "image/png")
    slide = Slide(
        slide_number=page_number,
        display_order=page_number,
        image_url=url,
        storage_path=key,
        is_active=True,
    )
    try:
        db.session.add(slide)
        db.session.commit()
    except Exception:
        db.session.rollback()
        _remove_objects(storage, [key])
        raise
    return slide


def list_slides(include_inactive: bool = False) -> List[Slide]:
    query = Slide.query
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(Slide.display_order.asc(), Slide.slide_number.asc()).all()


def _get_slide(slide_id: str) -> Slide:
    slide = db.session.get(Slide, slide_id) if slide_id else None
    if slide is None:
        raise SlideNotFoundError(slide_id)
    return slide


def set_active(slide_id: str, is_active: bool) -> Slide:
    slide = _get_slide(slide_id)
    slide.is_active = bool(is_active)
    db.session.commit()
    return slide


def delete_slide(slide_id: str, storage: Optional[ObjectStorage] = None) -> None:
    """Remove the row; the backing object is removed best-effort afterwards"""
    slide = _get_slide(slide_id)
    path = slide.storage_path
    db.session.delete(slide)
    db.session.commit()
    if storage is not None:
        _remove_objects(storage, [path])


def reorder(assignments: Sequence[Tuple[str, int]]) -> List[Slide]:
    """
    Persist ``(slide_id, display_order)`` pairs wholesale. The last writer
    wins; unknown ids reject the whole batch.
    """
    ids = [slide_id for slide_id, _ in assignments]
    slides = {s.id: s for s in Slide.query.filter(Slide.id.in_(ids)).all()} if ids else {}
    missing = [slide_id for slide_id in ids if slide_id not in slides]
    if missing:
        raise SlideNotFoundError(", ".join(missing))

    for slide_id, order in assignments:
        slides[slide_id].display_order = int(order)
    db.session.commit()
    return [slides[slide_id] for slide_id in ids]


def reorder_by_ids(ordered_ids: Sequence[str]) -> List[Slide]:
    """Assign display_order 1..N following the submitted order"""
    return reorder([(slide_id, position) for position, slide_id in enumerate(ordered_ids, start=1)])


def update_size(size: str) -> PitchDeckSettings:
    size = SlideSize(size).value
    settings = PitchDeckSettings.current()
    settings.slide_size = size
    db.session.commit()
    return settings


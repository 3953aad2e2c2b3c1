"""
Pitch deck routes: deck content, file upload with slide extraction,
per-page slide upload and slide management actions.
"""
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from baseline import db, slides
from baseline.auth import admin_required, roles_required
from baseline.document_store import get_document
from baseline.documents import publish_from_request
from baseline.errors import (
    DATABASE_ERRORS,
    FILE_UPLOAD_ERRORS,
    VALIDATION_ERRORS,
    PdfRenderError,
    SlideExtractionError,
    SlideNotFoundError,
    StorageError,
    friendly_error,
    json_error,
)
from baseline.models import DocumentKind, PitchDeckSettings, SlideSize
from baseline.services.pdf_service import PDF_MIME_TYPE, png_dimensions
from baseline.services.storage_service import upload_object_name

pitch_deck_bp = Blueprint('pitch_deck', __name__)

ALLOWED_MIME_TYPES = {
    "application/pdf",
    "video/mp4",
    "video/webm",
    "video/quicktime",
    "video/x-msvideo",
}
ALLOWED_EXTENSIONS = {"pdf", "mp4", "webm", "mov", "avi"}


def _extension(filename):
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def is_allowed_type(filename, mimetype):
    mime = (mimetype or "").lower()
    if mime and mime in ALLOWED_MIME_TYPES:
        return True
    return _extension(filename) in ALLOWED_EXTENSIONS


def is_pdf(filename, mimetype):
    return (mimetype or "").lower() == PDF_MIME_TYPE or _extension(filename) == "pdf"


def _storage():
    return current_app.extensions["object_storage"]


@pitch_deck_bp.route('/api/pitch-deck', methods=['GET'])
def pitch_deck_content():
    """Current pitch deck copy"""
    try:
        state = get_document(DocumentKind.PITCH_DECK)
    except Exception:
        current_app.logger.exception("Pitch deck fetch failed")
        return json_error(DATABASE_ERRORS["PITCH_DECK_FETCH"], 500)
    if state is None:
        return jsonify({"id": None, "updated_at": None, "version": 0, "payload": None})
    return jsonify(state.to_dict())


@pitch_deck_bp.route('/api/pitch-deck', methods=['POST'])
@admin_required
def save_pitch_deck_content():
    return publish_from_request(DocumentKind.PITCH_DECK, DATABASE_ERRORS["PITCH_DECK_SAVE_FAILED"])


@pitch_deck_bp.route('/api/pitch-deck/upload', methods=['POST'])
@admin_required
def upload_deck_file():
    """
    Store a PDF or video for the deck. PDFs are also split into slides,
    replacing the current deck when at least one page converts.
    """
    file = request.files.get('file')
    if file is None or not file.filename:
        return json_error(FILE_UPLOAD_ERRORS["FIELD_MISSING"], 400)

    data = file.read()
    if not data:
        return json_error(FILE_UPLOAD_ERRORS["EMPTY_FILE"], 400)
    if len(data) > current_app.config["MAX_UPLOAD_BYTES"]:
        return json_error(FILE_UPLOAD_ERRORS["TOO_LARGE"], 400)
    if not is_allowed_type(file.filename, file.mimetype):
        return json_error(FILE_UPLOAD_ERRORS["TYPE_UNSUPPORTED"], 400)

    storage = _storage()
    object_name = upload_object_name(file.filename)
    content_type = file.mimetype or "application/octet-stream"
    try:
        url = storage.upload(object_name, data, content_type)
    except StorageError as e:
        current_app.logger.error("Pitch deck file upload failed: %s", e)
        return json_error(FILE_UPLOAD_ERRORS["UPLOAD_FAILED"], 500)
    except Exception as e:
        current_app.logger.exception("Pitch deck file upload error")
        return json_error(friendly_error(e, FILE_UPLOAD_ERRORS["INTERNAL_ERROR"]), 500)

    result = {
        "fileName": object_name,
        "originalName": file.filename,
        "url": url,
        "contentType": content_type,
        "size": len(data),
        "isPDF": is_pdf(file.filename, file.mimetype),
        "slidesExtracted": 0,
    }

    if result["isPDF"]:
        try:
            extraction = slides.extract_deck(data, storage, current_app.config.get("SLIDE_RENDER_SCALE", 2.0))
        except PdfRenderError as e:
            current_app.logger.warning("Uploaded PDF %s could not be opened: %s", object_name, e)
            result["slidesError"] = FILE_UPLOAD_ERRORS["PDF_UNREADABLE"]
        except SlideExtractionError as e:
            current_app.logger.warning("No slides extracted from %s: %s", object_name, e)
            result["slidesError"] = FILE_UPLOAD_ERRORS["NO_SLIDES_EXTRACTED"]
        except Exception as e:
            current_app.logger.exception("Slide extraction failed for %s", object_name)
            result["slidesError"] = friendly_error(e, DATABASE_ERRORS["SLIDES_UPDATE_FAILED"])
        else:
            result["slidesExtracted"] = extraction.slides_extracted
            result["pagesTotal"] = extraction.pages_total

    return jsonify(result)


@pitch_deck_bp.route('/api/pitch-deck/upload-slide', methods=['POST'])
@admin_required
def upload_slide():
    """Store one page rendered by the browser; ``isFirst`` starts a new deck"""
    file = request.files.get('file')
    slide_number = request.form.get('slideNumber', '').strip()
    is_first = request.form.get('isFirst') == 'true'

    if file is None:
        return json_error(FILE_UPLOAD_ERRORS["FIELD_MISSING"], 400)
    if not slide_number:
        return json_error(VALIDATION_ERRORS["SLIDE_NUMBER_REQUIRED"], 400)
    try:
        page_number = int(slide_number)
    except ValueError:
        return json_error(VALIDATION_ERRORS["SLIDE_NUMBER_REQUIRED"], 400)
    if page_number < 1:
        return json_error(VALIDATION_ERRORS["SLIDE_NUMBER_REQUIRED"], 400)

    data = file.read()
    if not data:
        return json_error(FILE_UPLOAD_ERRORS["EMPTY_FILE"], 400)
    if len(data) > current_app.config["MAX_SLIDE_BYTES"]:
        return json_error(FILE_UPLOAD_ERRORS["SLIDE_TOO_LARGE"], 400)
    try:
        png_dimensions(data)
    except ValueError:
        return json_error(FILE_UPLOAD_ERRORS["SLIDE_NOT_IMAGE"], 400)

    storage = _storage()
    if is_first:
        try:
            removed = slides.clear_deck(storage)
        except Exception:
            current_app.logger.exception("Clearing the deck before slide 1 failed")
            return json_error(FILE_UPLOAD_ERRORS["DECK_CLEAR_FAILED"], 500)
        current_app.logger.info("Cleared %d slides for a new deck", removed)

    try:
        slide = slides.add_slide(page_number, data, storage)
    except StorageError as e:
        current_app.logger.error("Failed to upload slide %d: %s", page_number, e)
        return json_error(FILE_UPLOAD_ERRORS["UPLOAD_FAILED"], 500)
    except Exception:
        current_app.logger.exception("Failed to save slide %d", page_number)
        return json_error(DATABASE_ERRORS["SLIDES_UPDATE_FAILED"], 500)

    return jsonify({"success": True, "slide": slide.to_dict()})


@pitch_deck_bp.route('/api/pitch-deck/slides', methods=['GET'])
@roles_required('deck')
def list_slides():
    include_inactive = current_user.is_admin and request.args.get('include_inactive') == 'true'
    try:
        deck = slides.list_slides(include_inactive=include_inactive)
        settings = PitchDeckSettings.query.order_by(PitchDeckSettings.id).first()
    except Exception:
        current_app.logger.exception("Failed to fetch slides")
        return json_error(DATABASE_ERRORS["SLIDES_FETCH_FAILED"], 500)

    return jsonify({
        "slides": [slide.to_dict() for slide in deck],
        "settings": settings.to_dict() if settings else {"slide_size": SlideSize.MEDIUM.value},
    })


def _reorder_assignments(data):
    """``slides: [{id, display_order}]`` or ``slideIds: [...]`` as (id, order) pairs"""
    if isinstance(data.get('slideIds'), list):
        return [(str(slide_id), position) for position, slide_id in enumerate(data['slideIds'], start=1)]

    items = data.get('slides')
    if not isinstance(items, list):
        raise ValueError("slides list required")
    assignments = []
    for item in items:
        if not isinstance(item, dict) or not item.get('id'):
            raise ValueError("each slide needs an id")
        order = item.get('display_order')
        if isinstance(order, bool) or not isinstance(order, int):
            raise ValueError("display_order must be an integer")
        assignments.append((str(item['id']), order))
    return assignments


@pitch_deck_bp.route('/api/pitch-deck/slides', methods=['POST'])
@admin_required
def update_slides():
    """Slide actions: delete, set_active, update_size, reorder"""
    data = request.get_json(silent=True) or {}
    action = data.get('action')

    try:
        if action == 'delete':
            if not data.get('slideId'):
                return json_error(VALIDATION_ERRORS["SLIDE_ID_REQUIRED"], 400)
            slides.delete_slide(data['slideId'], _storage())
            return jsonify({"success": True})

        if action == 'set_active':
            if not data.get('slideId'):
                return json_error(VALIDATION_ERRORS["SLIDE_ID_REQUIRED"], 400)
            if not isinstance(data.get('is_active'), bool):
                return json_error(VALIDATION_ERRORS["IS_ACTIVE_REQUIRED"], 400)
            slide = slides.set_active(data['slideId'], data['is_active'])
            return jsonify({"success": True, "slide": slide.to_dict()})

        if action == 'update_size':
            try:
                settings = slides.update_size(data.get('size'))
            except ValueError:
                return json_error(VALIDATION_ERRORS["SLIDE_SIZE_INVALID"], 400)
            return jsonify({"success": True, "settings": settings.to_dict()})

        if action == 'reorder':
            try:
                assignments = _reorder_assignments(data)
            except ValueError:
                return json_error(VALIDATION_ERRORS["REORDER_INVALID"], 400)
            try:
                reordered = slides.reorder(assignments)
            except SlideNotFoundError:
                db.session.rollback()
                return json_error(VALIDATION_ERRORS["REORDER_INVALID"], 400)
            return jsonify({"success": True, "slides": [s.to_dict() for s in reordered]})

    except SlideNotFoundError:
        return json_error("Slide not found", 404)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update slides")
        return json_error(DATABASE_ERRORS["SLIDES_UPDATE_FAILED"], 500)

    return json_error(VALIDATION_ERRORS["INVALID_ACTION"], 400)

"""
Comic upload wizard.

A draft walks cover -> pages -> details -> review and is then submitted. Each
forward move is guarded; backward moves within the editing steps are always
allowed. Files are staged under the draft's staging prefix while editing and
copied to their final keys on submit.
"""
import io
import logging
import os
import re
import time
import uuid
import zipfile

from django.conf import settings
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError, transaction
from django.utils import timezone
from PIL import Image, UnidentifiedImageError

from bookmarkDesk.utils.ordering import OrderingError, move_item, persist_positions
from comicDesk.models import Genre
from storageDesk.services import (
    StorageError,
    delete_file,
    delete_prefix,
    get_file,
    put_object,
    staging_prefix,
    user_comic_cover_key,
    user_comic_page_key,
)

from .models import UploadDraft, UploadDraftPage, UserComic, UserComicPage

logger = logging.getLogger(__name__)

EDIT_STEPS = [
    UploadDraft.STATE_COVER,
    UploadDraft.STATE_PAGES,
    UploadDraft.STATE_DETAILS,
    UploadDraft.STATE_REVIEW,
]
FINAL_STATES = (UploadDraft.STATE_DONE, UploadDraft.STATE_FAILED)

IMAGE_EXTENSIONS = {'JPEG': '.jpg', 'PNG': '.png', 'GIF': '.gif', 'WEBP': '.webp'}
ZIP_IMAGE_RE = re.compile(r"\.(jpe?g|png|gif|webp)$", re.IGNORECASE)


class WizardError(ValueError):
    def __init__(self, message, code='invalid'):
        super().__init__(message)
        self.code = code


def can_transition(source: str, target: str) -> bool:
    """Structural check only; guards on draft content are applied separately."""
    if source in EDIT_STEPS and target in EDIT_STEPS:
        return abs(EDIT_STEPS.index(source) - EDIT_STEPS.index(target)) == 1
    if target == UploadDraft.STATE_SUBMITTING:
        return source == UploadDraft.STATE_REVIEW
    if source == UploadDraft.STATE_SUBMITTING:
        return target in FINAL_STATES
    return False


def make_slug(title: str) -> str:
    base = re.sub(r'[^\w\s-]', '', title.lower()).strip()
    base = re.sub(r'\s+', '-', base)
    suffix = str(int(time.time() * 1000))[-6:]
    return f"{base}-{suffix}" if base else suffix


def _natural_key(name):
    base = os.path.basename(name)
    digits = re.findall(r"(\d+)", base)
    return (int(digits[0]) if digits else 10**9, base.lower())


def inspect_image(file, max_bytes, label):
    """Return the staging extension for `file` or raise WizardError."""
    size = getattr(file, 'size', None)
    if size is None:
        file.seek(0, os.SEEK_END)
        size = file.tell()
    if size > max_bytes:
        raise WizardError(
            f"{label} must not exceed {max_bytes // (1024 * 1024)}MB",
            code='file_too_large',
        )
    try:
        file.seek(0)
        with Image.open(file) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        raise WizardError(f"{label} is not a valid image", code='not_an_image')
    finally:
        file.seek(0)
    if fmt not in IMAGE_EXTENSIONS:
        raise WizardError(f"{label} format {fmt} is not supported", code='not_an_image')
    return IMAGE_EXTENSIONS[fmt]


class UploadWizard:
    def __init__(self, draft: UploadDraft):
        self.draft = draft

    @classmethod
    def start(cls, user):
        draft = UploadDraft.objects.create(user=user)
        logger.info(f"Upload draft {draft.id} started by user {user.pk}")
        return cls(draft)

    @property
    def state(self):
        return self.draft.state

    @property
    def staging(self):
        return staging_prefix(self.draft.user_id, self.draft.id)

    def page_count(self):
        return self.draft.pages.count()

    def _require_state(self, state, action):
        if self.draft.state != state:
            raise WizardError(
                f"Cannot {action} while in the '{self.draft.state}' step",
                code='wrong_step',
            )

    def _set_state(self, state):
        previous = self.draft.state
        self.draft.state = state
        self.draft.save(update_fields=['state', 'updated_at'])
        logger.info(f"Draft {self.draft.id}: {previous} -> {state}")

    # -------------------------
    # Navigation
    # -------------------------
    def check_guard(self, target):
        draft = self.draft
        if target == UploadDraft.STATE_PAGES and draft.state == UploadDraft.STATE_COVER:
            if not draft.cover_key:
                raise WizardError("A cover image is required", code='cover_required')
        elif target == UploadDraft.STATE_DETAILS and draft.state == UploadDraft.STATE_PAGES:
            count = self.page_count()
            if count == 0:
                raise WizardError("At least one page is required", code='pages_required')
            if count > settings.UPLOAD_MAX_PAGES:
                raise WizardError(
                    f"A comic can have at most {settings.UPLOAD_MAX_PAGES} pages",
                    code='too_many_pages',
                )
        elif target == UploadDraft.STATE_REVIEW and draft.state == UploadDraft.STATE_DETAILS:
            if not draft.title.strip():
                raise WizardError("Title is required", code='title_required')
            if not draft.artist.strip():
                raise WizardError("Artist is required", code='artist_required')

    def go_to(self, target):
        if not can_transition(self.draft.state, target) or target not in EDIT_STEPS:
            raise WizardError(
                f"Cannot move from '{self.draft.state}' to '{target}'",
                code='invalid_transition',
            )
        self.check_guard(target)
        self._set_state(target)

    def advance(self):
        if self.draft.state not in EDIT_STEPS[:-1]:
            raise WizardError(f"No step after '{self.draft.state}'", code='invalid_transition')
        self.go_to(EDIT_STEPS[EDIT_STEPS.index(self.draft.state) + 1])

    def back(self):
        if self.draft.state not in EDIT_STEPS[1:]:
            raise WizardError(f"No step before '{self.draft.state}'", code='invalid_transition')
        self.go_to(EDIT_STEPS[EDIT_STEPS.index(self.draft.state) - 1])

    # -------------------------
    # Cover step
    # -------------------------
    def set_cover(self, file):
        self._require_state(UploadDraft.STATE_COVER, "change the cover")
        ext = inspect_image(file, settings.UPLOAD_MAX_COVER_BYTES, "Cover image")
        previous = self.draft.cover_key
        stored = put_object(f"{self.staging}cover{ext}", file)
        if previous and previous != stored.key:
            delete_file(previous)
        self.draft.cover_key = stored.key
        self.draft.cover_name = os.path.basename(getattr(file, 'name', '') or '')
        self.draft.save(update_fields=['cover_key', 'cover_name', 'updated_at'])
        return stored

    # -------------------------
    # Pages step
    # -------------------------
    def add_pages(self, files):
        """Stage page images after the current last page. All or nothing."""
        self._require_state(UploadDraft.STATE_PAGES, "add pages")
        files = list(files)
        if not files:
            raise WizardError("No pages supplied", code='pages_required')
        existing = self.page_count()
        if existing + len(files) > settings.UPLOAD_MAX_PAGES:
            raise WizardError(
                f"A comic can have at most {settings.UPLOAD_MAX_PAGES} pages "
                f"({existing} already added)",
                code='too_many_pages',
            )
        extensions = [inspect_image(f, settings.UPLOAD_MAX_PAGE_BYTES, f"Page '{f.name}'") for f in files]

        created = []
        written = []
        try:
            with transaction.atomic():
                for position, (file, ext) in enumerate(zip(files, extensions), start=existing):
                    stored = put_object(f"{self.staging}page-{uuid.uuid4().hex[:12]}{ext}", file)
                    written.append(stored.key)
                    created.append(UploadDraftPage.objects.create(
                        draft=self.draft,
                        position=position,
                        storage_key=stored.key,
                        original_name=os.path.basename(file.name or ''),
                        size=file.size,
                    ))
        except StorageError as e:
            self._remove_keys(written)
            raise WizardError(str(e), code='storage_error') from e
        except Exception:
            self._remove_keys(written)
            raise
        logger.info(f"Draft {self.draft.id}: staged {len(created)} pages")
        return created

    def add_pages_from_zip(self, zip_file):
        """
        Stage every root-level image of a ZIP archive, in natural filename
        order (page2 before page10).
        """
        self._require_state(UploadDraft.STATE_PAGES, "add pages")
        try:
            archive = zipfile.ZipFile(io.BytesIO(zip_file.read()))
        except zipfile.BadZipFile as e:
            raise WizardError(f"Invalid ZIP: {e}", code='invalid_zip') from e

        members = [
            m for m in archive.infolist()
            if not m.is_dir() and '/' not in m.filename.strip('/') and ZIP_IMAGE_RE.search(m.filename)
        ]
        members.sort(key=lambda m: _natural_key(m.filename))
        if not members:
            raise WizardError("ZIP contains no images", code='pages_required')

        existing = self.page_count()
        if existing + len(members) > settings.UPLOAD_MAX_PAGES:
            raise WizardError(
                f"A comic can have at most {settings.UPLOAD_MAX_PAGES} pages "
                f"({existing} already added, {len(members)} in the archive)",
                code='too_many_pages',
            )
        for member in members:
            if member.file_size > settings.UPLOAD_MAX_PAGE_BYTES:
                raise WizardError(
                    f"Page '{os.path.basename(member.filename)}' must not exceed "
                    f"{settings.UPLOAD_MAX_PAGE_BYTES // (1024 * 1024)}MB",
                    code='file_too_large',
                )

        files = []
        try:
            for member in members:
                files.append(SimpleUploadedFile(os.path.basename(member.filename), archive.read(member)))
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise WizardError(f"Invalid ZIP: {e}", code='invalid_zip') from e
        return self.add_pages(files)

    def remove_page(self, position: int):
        self._require_state(UploadDraft.STATE_PAGES, "remove pages")
        page = self.draft.pages.filter(position=position).first()
        if page is None:
            raise WizardError(f"No page at position {position}", code='invalid_index')
        with transaction.atomic():
            page.delete()
            remaining = list(self.draft.pages.order_by('position').values_list('pk', flat=True))
            persist_positions(self.draft.pages.all(), remaining, field='position', unique=True)
        delete_file(page.storage_key)

    def move_page(self, source: int, destination: int):
        self._require_state(UploadDraft.STATE_PAGES, "reorder pages")
        current = list(self.draft.pages.order_by('position').values_list('pk', flat=True))
        try:
            reordered = move_item(current, source, destination)
        except OrderingError as e:
            raise WizardError(str(e), code=e.code) from e
        persist_positions(self.draft.pages.all(), reordered, field='position', unique=True)

    # -------------------------
    # Details step
    # -------------------------
    def set_details(self, title=None, artist=None, description=None, language=None, tag_ids=None):
        self._require_state(UploadDraft.STATE_DETAILS, "edit details")
        draft = self.draft
        tags = None
        if tag_ids is not None:
            tags = list(Genre.objects.filter(id__in=tag_ids))
            if len(tags) != len(set(tag_ids)):
                raise WizardError("Unknown tag id", code='invalid_tag')
        if title is not None:
            draft.title = title.strip()
        if artist is not None:
            draft.artist = artist.strip()
        if description is not None:
            draft.description = description
        if language is not None:
            draft.language = language
        draft.save(update_fields=['title', 'artist', 'description', 'language', 'updated_at'])
        if tags is not None:
            draft.tags.set(tags)
        return draft

    # -------------------------
    # Submission
    # -------------------------
    def submit(self) -> UserComic:
        """
        Publish the draft. The database writes run in one transaction; if
        anything fails the transaction rolls back, every object written to
        storage so far is deleted and the draft ends in 'failed'.
        """
        self._require_state(UploadDraft.STATE_REVIEW, "submit")
        draft = self.draft
        if not draft.cover_key:
            raise WizardError("A cover image is required", code='cover_required')
        pages = list(draft.pages.order_by('position'))
        if not pages:
            raise WizardError("At least one page is required", code='pages_required')
        if len(pages) > settings.UPLOAD_MAX_PAGES:
            raise WizardError(f"A comic can have at most {settings.UPLOAD_MAX_PAGES} pages", code='too_many_pages')
        if not draft.title.strip() or not draft.artist.strip():
            raise WizardError("Title and artist are required", code='details_required')

        claimed = UploadDraft.objects.filter(pk=draft.pk, state=UploadDraft.STATE_REVIEW).update(
            state=UploadDraft.STATE_SUBMITTING, updated_at=timezone.now(),
        )
        if claimed != 1:
            draft.refresh_from_db(fields=['state', 'comic'])
            raise WizardError(
                f"Cannot submit while in the '{draft.state}' step",
                code='wrong_step',
            )
        draft.state = UploadDraft.STATE_SUBMITTING
        logger.info(f"Draft {draft.id}: review -> submitting")
        user_id = draft.user_id
        written = []
        try:
            with transaction.atomic():
                cover = put_object(user_comic_cover_key(user_id, draft.id), get_file(draft.cover_key))
                written.append(cover.key)

                comic = UserComic.objects.create(
                    id=draft.id,
                    user_id=user_id,
                    title=draft.title,
                    slug=make_slug(draft.title),
                    description=draft.description,
                    artist=draft.artist,
                    language=draft.language,
                    cover_image_url=cover.url,
                    cover_key=cover.key,
                    page_count=len(pages),
                    status=UserComic.STATUS_PUBLISHED,
                )

                for number, staged in enumerate(pages, start=1):
                    stored = put_object(
                        user_comic_page_key(user_id, comic.id, number),
                        get_file(staged.storage_key),
                    )
                    written.append(stored.key)
                    UserComicPage.objects.create(
                        comic=comic,
                        page_number=number,
                        image_url=stored.url,
                        storage_key=stored.key,
                    )

                comic.tags.set(draft.tags.all())
                draft.comic = comic
                draft.state = UploadDraft.STATE_DONE
                draft.error = ''
                draft.save(update_fields=['comic', 'state', 'error', 'updated_at'])
        except IntegrityError as e:
            code = 'slug_taken' if 'slug' in str(e).lower() else 'constraint_violation'
            self._fail(written, e)
            raise WizardError(
                "A comic with this title already exists, try again" if code == 'slug_taken' else str(e),
                code=code,
            ) from e
        except StorageError as e:
            self._fail(written, e)
            raise WizardError(str(e), code='storage_error') from e
        except Exception as e:
            self._fail(written, e)
            raise

        logger.info(f"Draft {draft.id} published as comic {comic.id} with {len(pages)} pages")
        try:
            delete_prefix(self.staging)
        except StorageError as e:
            logger.warning(f"Could not clear staging for draft {draft.id}: {e}")
        return comic

    def _remove_keys(self, keys):
        for key in keys:
            try:
                delete_file(key)
            except StorageError as e:
                logger.error(f"Could not remove {key} after failed write: {e}")

    def _fail(self, written, error):
        self._remove_keys(written)
        self.draft.comic = None
        self.draft.state = UploadDraft.STATE_FAILED
        self.draft.error = str(error)
        self.draft.save(update_fields=['comic', 'state', 'error', 'updated_at'])
        logger.error(f"Draft {self.draft.id} failed to publish: {error}")

    def discard(self):
        """Delete the draft and its staged files. Not allowed mid-submit."""
        if self.draft.state == UploadDraft.STATE_SUBMITTING:
            raise WizardError("Draft is being submitted", code='wrong_step')
        delete_prefix(self.staging)
        self.draft.delete()

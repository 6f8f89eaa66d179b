"""
Moving inline base64 photos out of asset/inspection records into blob storage.

Each model lists the fields that may hold photos; values can be a single
string or a list of strings (data URLs, bare base64 or already-migrated URLs).
"""
import logging

from backend.photos import blob_storage
from .models import VITAsset, VITInspection, OverheadLineInspection, SubstationInspection

logger = logging.getLogger(__name__)

PHOTO_FIELDS = {
    'vit': (VITAsset, 'vit-assets', ['photo', 'photo_url']),
    'vit-inspection': (VITInspection, 'vit-inspections', ['photo_urls']),
    'overhead': (OverheadLineInspection, 'overhead-inspections', ['photo_url', 'photos', 'before_photo', 'after_photo']),
    'substation': (SubstationInspection, 'substation-inspections', ['photos']),
}


def base64_fields(record, fields):
    """Names of the given fields that still contain base64 image data"""
    found = []
    for field in fields:
        value = getattr(record, field)
        if isinstance(value, list):
            if any(blob_storage.is_base64_image(item) for item in value):
                found.append(field)
        elif blob_storage.is_base64_image(value):
            found.append(field)
    return found


def strip_base64(value):
    """Drop base64 payloads from a photo value, keeping URLs"""
    if isinstance(value, list):
        return [item for item in value if not blob_storage.is_base64_image(item)]
    if blob_storage.is_base64_image(value):
        return ''
    return value


def migrate_record_photos(record, folder, fields):
    """
    Upload every base64 photo on ``record`` and replace it with its blob URL.

    VIT assets keep a single photo: the uploaded ``photo`` moves to ``photo_url``
    and the legacy field is cleared.

    Returns:
        number of images uploaded

    Raises:
        BlobStorageError: if any upload fails (the record is left unsaved)
    """
    uploaded = 0
    changed_fields = []
    for field in base64_fields(record, fields):
        value = getattr(record, field)
        if isinstance(value, list):
            new_items = []
            for index, item in enumerate(value):
                if blob_storage.is_base64_image(item):
                    blob_name = blob_storage.build_blob_name(folder, record.pk, f"{field}-{index}")
                    new_items.append(blob_storage.upload_base64_image(item, blob_name))
                    uploaded += 1
                else:
                    new_items.append(item)
            setattr(record, field, new_items)
        else:
            blob_name = blob_storage.build_blob_name(folder, record.pk, field)
            setattr(record, field, blob_storage.upload_base64_image(value, blob_name))
            uploaded += 1
        changed_fields.append(field)

    if isinstance(record, VITAsset) and 'photo' in changed_fields:
        record.photo_url = record.photo
        record.photo = ''
        changed_fields.append('photo_url')

    if changed_fields:
        record.save(update_fields=set(changed_fields))
        logger.info(f"Migrated {uploaded} photo(s) for {record.__class__.__name__} {record.pk}")
    return uploaded


def clear_record_photos(record, fields):
    """Remove base64 payloads without uploading. Returns the cleared field names."""
    cleared = base64_fields(record, fields)
    for field in cleared:
        setattr(record, field, strip_base64(getattr(record, field)))
    if cleared:
        record.save(update_fields=set(cleared))
    return cleared


def records_with_base64(model, fields):
    """Iterate records of ``model`` holding base64 data in any of ``fields``"""
    for record in model.objects.order_by('pk').iterator():
        if base64_fields(record, fields):
            yield record

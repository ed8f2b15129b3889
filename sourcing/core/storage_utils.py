# sourcing/core/storage_utils.py
import uuid

from sourcing.core.supabase_client import supabase_admin

SHIPMENT_BUCKET = "shipment_updates"
PAYMENT_PROOF_BUCKET = "payment-proofs"


def upload_to_storage(
    bucket: str,
    path: str,
    file_bytes: bytes,
    content_type: str | None = None,
) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    If a file already exists at this path, it will be overwritten
    thanks to the 'upsert' option.

    Args:
        bucket: Storage bucket name (SHIPMENT_BUCKET or PAYMENT_PROOF_BUCKET).
        path: Full object path inside the bucket.
              Example: "shipment-<uuid>/images/<uuid>.png"
        file_bytes: File content in bytes.
        content_type: Optional MIME type stored with the object.

    Returns:
        Public URL to the uploaded file.

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    options = {"upsert": "true"}
    if content_type:
        options["content-type"] = content_type

    storage = supabase_admin().storage.from_(bucket)
    storage.upload(path, file_bytes, options)
    return storage.get_public_url(path)


def delete_from_storage(bucket: str, path: str) -> None:
    """
    Delete a file from Supabase Storage by its object path.

    Example path (relative to bucket):
        'shipment-<uuid>/videos/<uuid>.mp4'
    """
    # Supabase Python client expects a list of paths.
    supabase_admin().storage.from_(bucket).remove([path])


def extract_path_from_public_url(bucket: str, url: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/shipment_updates/shipment-1/images/a.png
        -> 'shipment-1/images/a.png'
    """
    marker = f"/storage/v1/object/public/{bucket}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]


def delete_public_url(bucket: str, url: str) -> None:
    """
    Convenience helper: delete a file by its public URL.
    No-op if the URL does not belong to this bucket.
    """
    path = extract_path_from_public_url(bucket, url)
    if path:
        delete_from_storage(bucket, path)


def generate_filename(ext: str) -> str:
    """
    Generate a random filename using UUID4.

    Args:
        ext: File extension without dot (e.g. "png", "mp4")

    Returns:
        A filename like "<uuid4>.png"
    """
    return f"{uuid.uuid4()}.{ext}"

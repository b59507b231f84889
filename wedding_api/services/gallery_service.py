"""
Gallery ordering and soft-delete model.

The database row and the backing file are handled in two explicit steps:
the soft delete is committed first, then the file is removed best-effort.
Drift between the two is repaired by sweep_orphan_files().
"""
import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy import select, update, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from wedding_api.models import GalleryImage, IMAGE_TYPES
from wedding_api.services import file_store
from wedding_api.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


class GalleryNotFoundError(LookupError):
    """Raised when gallery ids do not name live rows."""

    def __init__(self, missing_ids):
        self.missing_ids = sorted(missing_ids)
        super().__init__(f"Image IDs not found: {self.missing_ids}")


@dataclass
class SweepReport:
    """Result of an orphan-file sweep."""
    orphan_files: List[str] = field(default_factory=list)
    removed_files: List[str] = field(default_factory=list)
    missing_files: List[str] = field(default_factory=list)


def _live():
    return GalleryImage.deleted_at.is_(None)


async def list_gallery_images(db: AsyncSession) -> List[GalleryImage]:
    """
    Live gallery rows in display order: the main image first, then gallery
    images by order_index; rows without an order_index follow by created_at.
    """
    result = await db.execute(
        select(GalleryImage)
        .where(_live())
        .order_by(
            case((GalleryImage.image_type == "main", 0), else_=1),
            GalleryImage.order_index.is_(None),
            GalleryImage.order_index.asc(),
            GalleryImage.created_at.asc(),
            GalleryImage.id.asc(),
        )
    )
    return list(result.scalars().all())


async def next_order_index(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.coalesce(func.max(GalleryImage.order_index), 0))
        .where(GalleryImage.image_type == "gallery", _live())
    )
    return int(result.scalar() or 0) + 1


async def add_gallery_image(db: AsyncSession, filename: str, image_type: str = "gallery") -> GalleryImage:
    """
    Record a stored file in the gallery.

    Adding a main image soft-deletes every live main row and then tries to
    remove their files. Gallery images are appended after the current last one.

    Raises:
        ValueError: If image_type is not 'main' or 'gallery'
    """
    if image_type not in IMAGE_TYPES:
        raise ValueError('Invalid image_type. Must be "main" or "gallery"')

    order_index = None
    replaced_files: List[str] = []

    if image_type == "main":
        result = await db.execute(
            select(GalleryImage.filename).where(GalleryImage.image_type == "main", _live())
        )
        replaced_files = [name for name in result.scalars().all() if name and name != filename]

        await db.execute(
            update(GalleryImage)
            .where(GalleryImage.image_type == "main", _live())
            .values(deleted_at=utcnow())
        )
    else:
        order_index = await next_order_index(db)

    image = GalleryImage(filename=filename, image_type=image_type, order_index=order_index)
    db.add(image)
    await db.commit()
    await db.refresh(image)

    logger.info(f"Added {image_type} image: ID {image.id}, filename={filename}, order_index={order_index}")

    for old_filename in replaced_files:
        file_store.delete_physical_file(old_filename)

    return image


async def reorder_gallery_images(db: AsyncSession, image_ids: List[int]) -> List[int]:
    """
    Assign order_index = position (starting at 1) following image_ids.

    Live gallery images missing from image_ids keep their relative order and
    are placed after the listed ones, so indices stay dense. All updates are
    committed in one transaction.

    Returns:
        List[int]: The final id order

    Raises:
        GalleryNotFoundError: If an id is unknown or deleted
        ValueError: If an id names a main image
    """
    result = await db.execute(
        select(GalleryImage).where(GalleryImage.id.in_(image_ids), _live())
    )
    found = {img.id: img for img in result.scalars().all()}

    missing_ids = set(image_ids) - set(found)
    if missing_ids:
        raise GalleryNotFoundError(missing_ids)

    main_ids = [img_id for img_id, img in found.items() if img.image_type == "main"]
    if main_ids:
        raise ValueError(f"Main images cannot be reordered: {sorted(main_ids)}")

    remaining = await db.execute(
        select(GalleryImage.id)
        .where(GalleryImage.image_type == "gallery", _live(), GalleryImage.id.not_in(image_ids))
        .order_by(
            GalleryImage.order_index.is_(None),
            GalleryImage.order_index.asc(),
            GalleryImage.created_at.asc(),
        )
    )
    final_ids = list(image_ids) + list(remaining.scalars().all())

    try:
        for position, image_id in enumerate(final_ids, start=1):
            await db.execute(
                update(GalleryImage)
                .where(GalleryImage.id == image_id)
                .values(order_index=position)
            )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Reordered {len(final_ids)} gallery images ({len(image_ids)} requested)")
    return final_ids


async def remove_gallery_image(db: AsyncSession, image_id: int) -> GalleryImage:
    """
    Soft-delete a gallery row, then remove its file best-effort.

    Raises:
        GalleryNotFoundError: If the id is unknown or already deleted
    """
    result = await db.execute(
        select(GalleryImage).where(GalleryImage.id == image_id, _live())
    )
    image = result.scalar_one_or_none()
    if image is None:
        raise GalleryNotFoundError({image_id})

    image.deleted_at = utcnow()
    await db.commit()
    logger.info(f"Soft-deleted gallery image: ID {image_id}")

    file_store.delete_physical_file(image.filename)
    return image


async def sweep_orphan_files(db: AsyncSession, dry_run: bool = False) -> SweepReport:
    """
    Reconcile the content directory with the gallery table.

    Gallery-named files (main_*, gallery_*) under images/ that no live row
    references are removed (unless dry_run). Files written by the generic
    image upload are not tracked in the table and are left alone. Live rows
    whose file is missing are reported, not changed.
    """
    result = await db.execute(select(GalleryImage.filename).where(_live()))
    referenced = set(result.scalars().all())

    report = SweepReport()
    for relative_path in file_store.list_image_files(file_store.GALLERY_FILE_PREFIXES):
        if relative_path in referenced:
            continue
        report.orphan_files.append(relative_path)
        if not dry_run and file_store.delete_physical_file(relative_path):
            report.removed_files.append(relative_path)

    report.missing_files = sorted(
        name for name in referenced
        if name.startswith(f"{file_store.IMAGES_SUBDIR}/") and not file_store.file_exists(name)
    )

    logger.info(
        f"Orphan sweep: {len(report.orphan_files)} orphan(s), "
        f"{len(report.removed_files)} removed, {len(report.missing_files)} row(s) missing a file"
        f"{' (dry run)' if dry_run else ''}"
    )
    return report

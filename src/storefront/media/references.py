"""Lookups for everything that can point at an image.

Products, drafts, user avatars and the page settings row all hold image
ids. An image is only safe to delete when none of them still does.
"""

from dataclasses import dataclass, field

from storefront.catalogue.draft import Draft
from storefront.catalogue.product import Product
from storefront.identity.user import User
from storefront.media.image import Image
from storefront.site.settings import PageSettings
from storefront.utils.query import find_all, find_one


@dataclass
class ImageReferences:
    products: list = field(default_factory=list)
    drafts: list = field(default_factory=list)
    users: list = field(default_factory=list)
    page_settings: list = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.products or self.drafts or self.users or self.page_settings)

    def describe(self) -> str:
        counts = {
            "product": len(self.products),
            "draft": len(self.drafts),
            "avatar": len(self.users),
            "page setting": len(self.page_settings),
        }
        return ", ".join(f"{count} {kind}(s)" for kind, count in counts.items() if count)


def image_references(image_id, exclude_product=None, exclude_draft=None) -> ImageReferences:
    """Collect the records referencing ``image_id``, skipping the excluded product or draft."""
    image_id = str(image_id)
    return ImageReferences(
        products=[
            p
            for p in find_all(Product)
            if str(p.id) != str(exclude_product) and p.references_image(image_id)
        ],
        drafts=[
            d
            for d in find_all(Draft)
            if str(d.id) != str(exclude_draft) and image_id in d.image_ids()
        ],
        users=find_all(User, avatar_image_id=image_id),
        page_settings=[s for s in find_all(PageSettings) if s.references_image(image_id)],
    )


def unreferenced_images(image_ids, exclude_product=None, exclude_draft=None) -> list:
    """Images among ``image_ids`` that nothing else references."""
    orphans = []
    for image_id in dict.fromkeys(str(i) for i in image_ids):
        if image_references(image_id, exclude_product=exclude_product, exclude_draft=exclude_draft):
            continue
        image = find_one(Image, id=image_id)
        if image is not None:
            orphans.append(image)
    return orphans

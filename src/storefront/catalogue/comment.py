"""Product comments with threaded replies."""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.utils.query import find_all, find_one

MAX_COMMENT_LENGTH = 2000


@storefront.aggregate
class Comment:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    text = Text(required=True)
    parent_id = Identifier()
    likes = Integer(default=0)
    dislikes = Integer(default=0)
    created_at = DateTime()


def build_thread(comments) -> list[dict]:
    """Arrange comments into a reply tree, newest first at every level."""
    ordered = sorted(comments, key=lambda c: c.created_at, reverse=True)
    nodes = {str(c.id): {"comment": c, "replies": []} for c in ordered}
    roots = []
    for comment in ordered:
        node = nodes[str(comment.id)]
        parent = nodes.get(str(comment.parent_id)) if comment.parent_id else None
        if parent is not None:
            parent["replies"].append(node)
        else:
            roots.append(node)
    return roots


def descendants_of(comment, comments) -> list:
    """The comment itself plus every reply beneath it."""
    children = {}
    for candidate in comments:
        if candidate.parent_id:
            children.setdefault(str(candidate.parent_id), []).append(candidate)

    collected, pending = [], [comment]
    while pending:
        current = pending.pop()
        collected.append(current)
        pending.extend(children.get(str(current.id), []))
    return collected


@storefront.command(part_of="Comment")
class AddComment:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    text = Text(required=True)
    parent_id = Identifier()


@storefront.command(part_of="Comment")
class DeleteComment:
    comment_id = Identifier(required=True)
    user_id = Identifier(required=True)
    is_admin = Boolean(default=False)


@storefront.command_handler(part_of=Comment)
class CommentHandler:
    @handle(AddComment)
    def add_comment(self, command):
        text = (command.text or "").strip()
        if not text:
            raise ValidationError({"text": ["Comment text is required"]})
        if len(text) > MAX_COMMENT_LENGTH:
            raise ValidationError({"text": [f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters"]})

        current_domain.repository_for(Product).get(command.product_id)

        if command.parent_id:
            parent = find_one(Comment, id=str(command.parent_id))
            if parent is None or str(parent.product_id) != str(command.product_id):
                raise ValidationError({"parent_id": ["Parent comment not found on this product"]})

        comment = Comment(
            user_id=command.user_id,
            product_id=command.product_id,
            text=text,
            parent_id=command.parent_id,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(Comment).add(comment)
        return str(comment.id)

    @handle(DeleteComment)
    def delete_comment(self, command):
        repo = current_domain.repository_for(Comment)
        comment = repo.get(command.comment_id)
        if str(comment.user_id) != str(command.user_id) and not command.is_admin:
            raise ValidationError({"comment": ["Only the author or an admin can delete this comment"]})

        thread = descendants_of(comment, find_all(Comment, product_id=str(comment.product_id)))
        for item in thread:
            repo._dao.delete(item)
        return len(thread)

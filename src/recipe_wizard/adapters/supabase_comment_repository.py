"""Supabase repository for recipe comments."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from recipe_wizard.domain.recipes import Comment
from recipe_wizard.services.recipes import CommentRepository


@dataclass
class SupabaseCommentRepository(CommentRepository):
    """Supabase-backed comment repository."""

    client: Client

    def list_comments(self, recipe_id: int) -> list[Comment]:
        """Return comments for a recipe, newest first."""
        response = (
            self.client.table("comments")
            .select("*")
            .eq("recipe_id", recipe_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_comment(row) for row in response.data or []]

    def create_comment(
        self, recipe_id: int, user_id: str, user_email: str | None, content: str
    ) -> Comment:
        """Insert a comment and return it."""
        response = (
            self.client.table("comments")
            .insert(
                {
                    "recipe_id": recipe_id,
                    "user_id": user_id,
                    "user_email": user_email,
                    "content": content,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create comment")
        return _parse_comment(response.data[0])


def _parse_comment(row: dict[str, object]) -> Comment:
    created_raw = row.get("created_at")
    return Comment(
        id=int(row["id"]),
        recipe_id=int(row["recipe_id"]),
        user_id=str(row.get("user_id", "")),
        user_email=row.get("user_email"),
        content=str(row.get("content", "")),
        created_at=(
            datetime.fromisoformat(created_raw)
            if isinstance(created_raw, str) and created_raw
            else None
        ),
    )

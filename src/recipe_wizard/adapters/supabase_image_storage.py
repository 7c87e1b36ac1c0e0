"""Supabase Storage bucket for recipe photos."""

from dataclasses import dataclass

from supabase import Client

from recipe_wizard.services.recipes import ImageStorage


@dataclass
class SupabaseImageStorage(ImageStorage):
    """Uploads images to a public Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload bytes without overwriting and return the public URL."""
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(
            path=path,
            file=data,
            file_options={"content-type": content_type, "upsert": "false"},
        )
        return bucket.get_public_url(path)

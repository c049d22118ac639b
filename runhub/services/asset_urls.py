"""Public CDN URLs for run output assets."""

from typing import Any, Dict, Iterable, List, Optional

from runhub.config import settings

ASSET_KINDS = ("images", "files")


class AssetURLRewriter:
    """Builds public URLs for files a machine uploaded to object storage.

    Pure and deterministic: output depends only on the configured bases and
    the arguments. Stored output records are never modified.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        bucket: Optional[str] = None,
        cdn_endpoint: Optional[str] = None,
    ):
        self.endpoint = (endpoint if endpoint is not None else settings.SPACES_ENDPOINT).rstrip("/")
        self.bucket = (bucket if bucket is not None else settings.SPACES_BUCKET).strip("/")
        self.cdn_endpoint = (cdn_endpoint if cdn_endpoint is not None else settings.SPACES_ENDPOINT_CDN).rstrip("/")

    def storage_url(self, run_id: str, filename: str) -> str:
        """Internal storage location of an uploaded output."""
        return f"{self.endpoint}/{self.bucket}/outputs/runs/{run_id}/{filename}"

    def replace_cdn_url(self, url: str) -> str:
        """Swap the internal storage host for the public CDN host."""
        if not self.cdn_endpoint or not self.endpoint:
            return url
        if url.startswith(self.cdn_endpoint):
            return url
        if url.startswith(self.endpoint):
            return self.cdn_endpoint + url[len(self.endpoint):]
        return url

    def rewrite(self, run_id: str, filename: str) -> str:
        return self.replace_cdn_url(self.storage_url(run_id, filename))

    def rewrite_output(self, run_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of one output's data with ``url`` set on every asset."""
        view = dict(data)
        for kind in ASSET_KINDS:
            assets = data.get(kind)
            if isinstance(assets, list):
                view[kind] = list(self._rewrite_assets(run_id, assets))
        return view

    def rewrite_outputs(self, run_id: str, outputs: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [self.rewrite_output(run_id, data) for data in outputs]

    def _rewrite_assets(self, run_id: str, assets: List[Any]):
        for asset in assets:
            if isinstance(asset, dict) and asset.get("filename"):
                yield {**asset, "url": self.rewrite(run_id, asset["filename"])}
            else:
                yield asset

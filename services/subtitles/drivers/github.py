"""GitHub repository storage for SRT files via the contents API."""

from __future__ import annotations

import base64
from collections.abc import Callable

from shared.http_client import AsyncHTTPClient
from shared.models import SrtUploadResult
from shared.utils import config, setup_logging

from .base import SrtStorageProvider

logger = setup_logging("github-srt-storage")

GITHUB_API_URL = "https://api.github.com"
GITHUB_RAW_URL = "https://raw.githubusercontent.com"


class GitHubSrtStorageProvider(SrtStorageProvider):
    """Commit SRT files to a repository and serve them from raw.githubusercontent.com."""

    def __init__(
        self,
        token: str | None = None,
        owner: str | None = None,
        repo: str | None = None,
        branch: str | None = None,
        path: str | None = None,
        http_client_factory: Callable[[], AsyncHTTPClient] | None = None,
    ):
        self.token = token or config.get("github_token", "")
        self.owner = owner or config.get("github_owner", "")
        self.repo = repo or config.get("github_repo", "")
        self.branch = branch or config.get("github_branch", "main")
        self.path = path if path is not None else config.get("github_path", "subs")
        self._http_client_factory = http_client_factory or (lambda: AsyncHTTPClient(timeout=60))

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "subtitle-pipeline",
        }

    def _contents_url(self, repo_path: str) -> str:
        return f"{GITHUB_API_URL}/repos/{self.owner}/{self.repo}/contents/{repo_path}"

    def raw_url(self, repo_path: str) -> str:
        return f"{GITHUB_RAW_URL}/{self.owner}/{self.repo}/{self.branch}/{repo_path}"

    async def _existing_sha(self, client: AsyncHTTPClient, repo_path: str) -> str | None:
        response = await client.get(f"{self._contents_url(repo_path)}?ref={self.branch}", headers=self._headers())
        if not response.ok:
            return None
        try:
            return response.json().get("sha")
        except (ValueError, AttributeError):
            return None

    async def upload_srt(self, srt_content: str, file_name: str, tenant_id: str | None = None) -> SrtUploadResult:
        repo_path = self.build_path(file_name, tenant_id, self.path)
        logger.info("Uploading SRT to GitHub: %s", repo_path)

        try:
            async with self._http_client_factory() as client:
                body = {
                    "message": f"Add/Update subtitle: {file_name}",
                    "content": base64.b64encode(srt_content.encode("utf-8")).decode("ascii"),
                    "branch": self.branch,
                }
                sha = await self._existing_sha(client, repo_path)
                if sha:
                    logger.info("File exists, updating in place. SHA: %s", sha)
                    body["sha"] = sha
                response = await client.put(self._contents_url(repo_path), json_body=body, headers=self._headers())
        except Exception as exc:
            logger.error("Failed to upload SRT to GitHub %s: %s", file_name, exc)
            return SrtUploadResult.failure_result(f"Upload failed: {exc}")

        if not response.ok:
            logger.error("GitHub upload failed: %s - %s", response.status, response.body)
            return SrtUploadResult.failure_result(f"GitHub upload failed: {response.status}")

        url = self.raw_url(repo_path)
        logger.info("Uploaded SRT to GitHub: %s", url)
        return SrtUploadResult.success_result(url)

    async def get_srt_content(self, file_name: str, tenant_id: str | None = None) -> str | None:
        repo_path = self.build_path(file_name, tenant_id, self.path)
        try:
            async with self._http_client_factory() as client:
                response = await client.get(self.raw_url(repo_path))
        except Exception as exc:
            logger.error("Failed to get SRT from GitHub %s: %s", repo_path, exc)
            return None
        return response.body if response.ok else None

    async def delete_srt(self, file_name: str, tenant_id: str | None = None) -> bool:
        repo_path = self.build_path(file_name, tenant_id, self.path)
        try:
            async with self._http_client_factory() as client:
                sha = await self._existing_sha(client, repo_path)
                if not sha:
                    logger.warning("File not found for deletion: %s", repo_path)
                    return False
                response = await client.delete(
                    self._contents_url(repo_path),
                    json_body={"message": f"Delete subtitle: {file_name}", "sha": sha, "branch": self.branch},
                    headers=self._headers(),
                )
        except Exception as exc:
            logger.error("Failed to delete SRT from GitHub %s: %s", repo_path, exc)
            return False

        if response.ok:
            logger.info("Deleted SRT from GitHub: %s", repo_path)
            return True
        logger.warning("Failed to delete SRT from GitHub: %s, status %s", repo_path, response.status)
        return False

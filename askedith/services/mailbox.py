import logging
from typing import Any
from urllib.parse import urlencode
import httpx
from askedith.config import settings
from askedith.errors import MailboxAuthError, MailboxError

logger = logging.getLogger(__name__)

RESOURCE_CATEGORIES = [
    "Veteran Benefits",
    "Aging Life Care Professionals",
    "Home Care Companies",
    "Government Agencies",
    "Financial Advisors",
]

class MailboxClient:
    """Nylas v3 grants API. A user authorizes once; the grant id then stands in for their mailbox.

    Sent outreach is filed under ``<root>/<category>`` so replies stay grouped by resource type.
    """

    def __init__(self, api_key: str | None = None, client_id: str | None = None, base_url: str | None = None,
                 redirect_uri: str | None = None, root_folder: str | None = None, timeout: float | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key if api_key is not None else settings.NYLAS_API_KEY
        self.client_id = client_id if client_id is not None else settings.NYLAS_CLIENT_ID
        self.base_url = (base_url or settings.NYLAS_API_URI).rstrip("/")
        self.redirect_uri = redirect_uri or settings.NYLAS_REDIRECT_URI
        self.root_folder = root_folder or settings.MAILBOX_ROOT_FOLDER
        self._http = httpx.AsyncClient(
            base_url=f"{self.base_url}/v3",
            timeout=timeout or settings.SEND_TIMEOUT_SECONDS,
            headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.client_id)

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        resp = await self._http.request(method, path, **kwargs)
        if resp.status_code in (401, 403):
            raise MailboxAuthError(f"Mailbox authorization rejected ({resp.status_code})")
        if resp.status_code >= 400:
            raise MailboxError(f"Mailbox API error {resp.status_code}: {resp.text}", resp.status_code)
        body = resp.json() if resp.content else {}
        return body.get("data", body) if isinstance(body, dict) else body

    # ---------- authorization ----------

    def authorize_url(self, email: str, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "access_type": "online",
            "login_hint": email,
            "state": state,
        }
        return f"{self.base_url}/v3/connect/auth?{urlencode(params)}"

    async def exchange_code(self, code: str) -> dict:
        """Trade a one-time OAuth code for a durable grant. Returns ``{grant_id, email, provider}``."""
        data = await self._request("POST", "/connect/token", json={
            "client_id": self.client_id,
            "client_secret": self.api_key,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
        })
        grant_id = data.get("grant_id")
        if not grant_id:
            raise MailboxAuthError("Token exchange returned no grant id")
        logger.info(f"Mailbox grant obtained for {data.get('email')}")
        return {"grant_id": grant_id, "email": data.get("email"), "provider": data.get("provider")}

    async def check_connection(self, grant_id: str) -> bool:
        try:
            await self._request("GET", f"/grants/{grant_id}")
        except (MailboxError, MailboxAuthError, httpx.HTTPError) as e:
            logger.warning(f"Mailbox connection check failed: {e}")
            return False
        return True

    # ---------- messages ----------

    async def send(self, grant_id: str, to: str, subject: str, body: str, reply_to: str | None = None) -> str:
        payload: dict = {"subject": subject, "to": [{"email": to}], "body": body.replace("\n", "<br>")}
        if reply_to:
            payload["reply_to"] = [{"email": reply_to}]
        data = await self._request("POST", f"/grants/{grant_id}/messages/send", json=payload)
        message_id = data.get("id")
        if not message_id:
            raise MailboxError("Mailbox send returned no message id")
        return message_id

    async def list_folders(self, grant_id: str) -> list[dict]:
        return await self._request("GET", f"/grants/{grant_id}/folders")

    def _category_folder_name(self, category: str, provider: str | None) -> str:
        # Gmail labels are flat, so nesting is spelled into the name
        return f"{self.root_folder}/{category}" if provider == "google" else category

    async def _provider(self, grant_id: str) -> str | None:
        grant = await self._request("GET", f"/grants/{grant_id}")
        return grant.get("provider")

    def _find_category_folder(self, folders: list[dict], category: str, provider: str | None) -> dict | None:
        name = self._category_folder_name(category, provider)
        if provider == "google":
            return next((f for f in folders if f.get("name") == name), None)
        root = next((f for f in folders if f.get("name") == self.root_folder), None)
        if not root:
            return None
        return next((f for f in folders if f.get("name") == name and f.get("parent_id") == root.get("id")), None)

    async def ensure_folder_structure(self, grant_id: str, categories: list[str] | None = None) -> dict[str, str]:
        """Create the root folder and one folder per category where missing. Returns name -> folder id."""
        provider = await self._provider(grant_id)
        folders = await self.list_folders(grant_id)
        ids: dict[str, str] = {}

        root = next((f for f in folders if f.get("name") == self.root_folder), None)
        if not root:
            root = await self._request("POST", f"/grants/{grant_id}/folders", json={"name": self.root_folder})
            folders.append(root)
        ids["main"] = root["id"]

        for category in categories or RESOURCE_CATEGORIES:
            existing = self._find_category_folder(folders, category, provider)
            if not existing:
                payload = {"name": self._category_folder_name(category, provider)}
                if provider != "google":
                    payload["parent_id"] = root["id"]
                existing = await self._request("POST", f"/grants/{grant_id}/folders", json=payload)
                folders.append(existing)
            ids[category] = existing["id"]
        return ids

    async def file_into_category(self, grant_id: str, message_id: str, category: str) -> bool:
        provider = await self._provider(grant_id)
        folder = self._find_category_folder(await self.list_folders(grant_id), category, provider)
        if not folder:
            logger.info(f"No mailbox folder for category {category!r}; message {message_id} left in place")
            return False
        await self._request("PUT", f"/grants/{grant_id}/messages/{message_id}", json={"folders": [folder["id"]]})
        return True

    async def list_by_category(self, grant_id: str, category: str, limit: int = 20) -> list[dict]:
        provider = await self._provider(grant_id)
        folder = self._find_category_folder(await self.list_folders(grant_id), category, provider)
        if not folder:
            return []
        return await self._request("GET", f"/grants/{grant_id}/messages", params={"in": folder["id"], "limit": limit})

import json
import httpx
from typing import Optional, Dict, Any, List
import logging
from storesync.core.config import settings, Settings

logger = logging.getLogger(__name__)

class ErpNextError(Exception):
    """Базовое исключение интеграции с ERPNext"""
    pass

class NotConfiguredError(ErpNextError):
    """Не заданы URL или ключи ERPNext, интеграция выключена"""
    def __init__(self, message: str = "ERPNext credentials not configured"):
        super().__init__(message)

class RemoteError(ErpNextError):
    """Ошибка в ответе от ERPNext (status_code=0 означает сбой транспорта)"""
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"ERPNext API error: {status_code} - {body[:500]}")

class ErpNextClient:
    """Клиент для работы с REST API ERPNext.

    Только собирает заголовок авторизации и (де)сериализует JSON:
    без сопоставления, маппинга и повторных попыток. Отсутствие
    настроек не ошибка при создании: вызывающий код проверяет
    is_configured перед синхронизацией.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        timeout: int = 30,
        http_client: Optional[httpx.Client] = None
    ):
        self.base_url = base_url.rstrip('/') if base_url else None
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout

        # Сессия HTTP (можно передать свою, например транспорт для тестов)
        self._client: Optional[httpx.Client] = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None, **kwargs) -> "ErpNextClient":
        config = config or settings
        return cls(
            base_url=config.ERPNEXT_URL,
            api_key=config.ERPNEXT_API_KEY,
            api_secret=config.ERPNEXT_API_SECRET,
            timeout=config.ERPNEXT_TIMEOUT,
            **kwargs
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key and self.api_secret)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self):
        """Создание HTTP сессии"""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
            self._owns_client = True
            logger.info(f"Connected to ERPNext API at {self.base_url}")

    def close(self):
        """Закрытие HTTP сессии"""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
            logger.info("Disconnected from ERPNext API")

    def _get_headers(self) -> Dict[str, str]:
        """Заголовки запроса, включая статичный токен ERPNext"""
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"token {self.api_key}:{self.api_secret}",
        }

    def request(self, method: str, path: str, **kwargs) -> Any:
        """Выполнение запроса; возвращает поле data декодированного ответа"""
        if not self.is_configured:
            raise NotConfiguredError()

        self.connect()
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug(f"Request to ERPNext: {method} {url}")

        try:
            response = self._client.request(method, url, headers=self._get_headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"ERPNext request failed: {method} {url}: {e}")
            raise RemoteError(0, str(e)) from e

        if not response.is_success:
            logger.error(f"ERPNext API error: {method} {url} -> {response.status_code}")
            raise RemoteError(response.status_code, response.text)

        if not response.content:
            return None
        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteError(response.status_code, response.text) from e

        if isinstance(payload, dict):
            return payload.get("data")
        return payload

    def get_list(
        self,
        doctype: str,
        filters: Optional[List[Any]] = None,
        fields: Optional[List[str]] = None,
        limit_page_length: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """GET /api/resource/{doctype} со списком документов"""
        params = {}
        if filters is not None:
            params["filters"] = json.dumps(filters)
        if fields is not None:
            params["fields"] = json.dumps(fields)
        if limit_page_length is not None:
            params["limit_page_length"] = limit_page_length

        data = self.request("GET", f"/api/resource/{doctype}", params=params)
        return data or []

    def insert(self, doctype: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        """POST /api/resource/{doctype}"""
        data = self.request("POST", f"/api/resource/{doctype}", json=doc)
        return data or {}

    def update(self, doctype: str, name: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        """PUT /api/resource/{doctype}/{name}"""
        data = self.request("PUT", f"/api/resource/{doctype}/{name}", json=doc)
        return data or {}

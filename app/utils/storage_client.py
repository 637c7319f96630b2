"""
录音对象存储客户端
- LocalRecordingStorage: 保存在本地文件系统 {root}/{bucket}/{path}
- SupabaseRecordingStorage: 调用 Supabase Storage REST API
"""
import logging
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

import requests

from app.config.settings import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """存储操作失败"""


class RecordingStorage:
    """录音存储接口"""

    def upload(self, bucket: str, path: str, data: bytes, content_type: str = "audio/wav") -> str:
        raise NotImplementedError

    def download(self, bucket: str, path: str) -> Optional[bytes]:
        raise NotImplementedError

    def remove(self, bucket: str, paths: List[str]) -> int:
        raise NotImplementedError

    def list_files(self, bucket: str, prefix: str = "") -> List[str]:
        raise NotImplementedError

    def total_size(self, bucket: str) -> int:
        raise NotImplementedError


class LocalRecordingStorage(RecordingStorage):
    """本地文件系统存储"""

    def __init__(self, root: str):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"本地录音存储初始化完成: {self.root}")

    def _resolve(self, bucket: str, path: str = "") -> Path:
        target = (self.root / bucket / path).resolve()
        bucket_root = (self.root / bucket).resolve()
        if target != bucket_root and bucket_root not in target.parents:
            raise StorageError(f"非法的存储路径: {path}")
        return target

    def upload(self, bucket: str, path: str, data: bytes, content_type: str = "audio/wav") -> str:
        target = self._resolve(bucket, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"保存录音失败 {bucket}/{path}: {e}")
            raise StorageError(f"保存录音失败: {path}") from e
        logger.info(f"录音已保存: {bucket}/{path} ({len(data)}字节)")
        return path

    def download(self, bucket: str, path: str) -> Optional[bytes]:
        target = self._resolve(bucket, path)
        if not target.is_file():
            return None
        return target.read_bytes()

    def remove(self, bucket: str, paths: List[str]) -> int:
        removed = 0
        for path in paths:
            target = self._resolve(bucket, path)
            if target.is_file():
                target.unlink()
                removed += 1
                self._prune_empty_dirs(target.parent, self._resolve(bucket))
        logger.info(f"删除录音文件: {bucket} 共{removed}个")
        return removed

    def _prune_empty_dirs(self, directory: Path, stop: Path):
        while directory != stop and stop in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                break
            directory = directory.parent

    def list_files(self, bucket: str, prefix: str = "") -> List[str]:
        base = self._resolve(bucket)
        start = self._resolve(bucket, prefix)
        if not start.exists():
            return []
        return sorted(
            p.relative_to(base).as_posix() for p in start.rglob("*") if p.is_file()
        )

    def total_size(self, bucket: str) -> int:
        base = self._resolve(bucket)
        if not base.exists():
            return 0
        return sum(p.stat().st_size for p in base.rglob("*") if p.is_file())


class SupabaseRecordingStorage(RecordingStorage):
    """Supabase Storage 存储"""

    def __init__(self, url: str, service_key: str, timeout: int = 30):
        if not url or not service_key:
            raise StorageError("缺少 SUPABASE_URL 或 SUPABASE_SERVICE_KEY 配置")
        self.base_url = url.rstrip("/") + "/storage/v1"
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        })
        logger.info(f"Supabase录音存储初始化完成: {self.base_url}")

    def _object_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/object/{quote(bucket)}/{quote(path)}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            raise StorageError(f"存储请求超时，超过{self.timeout}秒") from e
        except requests.exceptions.ConnectionError as e:
            raise StorageError("存储服务连接错误") from e
        except requests.exceptions.RequestException as e:
            raise StorageError(f"存储请求异常: {e}") from e

    @staticmethod
    def _is_bucket_missing(response: requests.Response) -> bool:
        return response.status_code in (400, 404) and "bucket not found" in response.text.lower()

    def create_bucket(self, bucket: str):
        """创建私有存储桶"""
        response = self._request(
            "POST", f"{self.base_url}/bucket",
            json={"id": bucket, "name": bucket, "public": False}
        )
        if response.status_code not in (200, 201):
            logger.error(f"创建存储桶 {bucket} 失败: {response.status_code} {response.text}")
            raise StorageError(f"创建存储桶失败: {bucket}")
        logger.info(f"已创建存储桶: {bucket}")

    def upload(self, bucket: str, path: str, data: bytes, content_type: str = "audio/wav") -> str:
        headers = {
            "Content-Type": content_type,
            "x-upsert": "true",
            "cache-control": f"max-age={settings.STORAGE_CACHE_CONTROL}",
        }
        response = self._request("POST", self._object_url(bucket, path), data=data, headers=headers)

        if self._is_bucket_missing(response):
            logger.warning(f"存储桶 {bucket} 不存在，尝试创建")
            self.create_bucket(bucket)
            response = self._request("POST", self._object_url(bucket, path), data=data, headers=headers)

        if response.status_code not in (200, 201):
            logger.error(f"上传录音失败 {bucket}/{path}: {response.status_code} {response.text}")
            raise StorageError(f"上传录音失败: {path}")

        logger.info(f"录音已上传: {bucket}/{path} ({len(data)}字节)")
        return path

    def download(self, bucket: str, path: str) -> Optional[bytes]:
        response = self._request("GET", self._object_url(bucket, path))
        if response.status_code == 200:
            return response.content
        if response.status_code in (400, 404):
            return None
        raise StorageError(f"下载录音失败: {path} (HTTP {response.status_code})")

    def remove(self, bucket: str, paths: List[str]) -> int:
        if not paths:
            return 0
        response = self._request("DELETE", f"{self.base_url}/object/{quote(bucket)}", json={"prefixes": paths})
        if response.status_code != 200:
            raise StorageError(f"删除录音失败 (HTTP {response.status_code})")
        return len(response.json() or [])

    def _list(self, bucket: str, prefix: str) -> List[dict]:
        response = self._request(
            "POST", f"{self.base_url}/object/list/{quote(bucket)}",
            json={"prefix": prefix, "limit": 1000, "offset": 0,
                  "sortBy": {"column": "name", "order": "asc"}}
        )
        if self._is_bucket_missing(response):
            return []
        if response.status_code != 200:
            raise StorageError(f"列出录音失败 (HTTP {response.status_code})")
        return response.json() or []

    def _walk(self, bucket: str, prefix: str = ""):
        for entry in self._list(bucket, prefix):
            name = f"{prefix}/{entry['name']}" if prefix else entry["name"]
            if entry.get("id") is None:
                # 没有id的条目是目录
                yield from self._walk(bucket, name)
            else:
                yield name, (entry.get("metadata") or {}).get("size", 0)

    def list_files(self, bucket: str, prefix: str = "") -> List[str]:
        return [name for name, _ in self._walk(bucket, prefix.strip("/"))]

    def total_size(self, bucket: str) -> int:
        return sum(size for _, size in self._walk(bucket))


_storage: Optional[RecordingStorage] = None


def get_storage() -> RecordingStorage:
    """按配置创建全局存储客户端"""
    global _storage
    if _storage is None:
        if settings.STORAGE_BACKEND == "supabase":
            _storage = SupabaseRecordingStorage(
                settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY, settings.STORAGE_TIMEOUT
            )
        else:
            _storage = LocalRecordingStorage(settings.storage_root)
    return _storage

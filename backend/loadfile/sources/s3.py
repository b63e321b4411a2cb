# backend/loadfile/sources/s3.py
from __future__ import annotations

"""
/**
 * @brief S3 对象存储数据源：s3://bucket/key -> GetObject 的 Body 流。
 *        S3 object-storage source: s3://bucket/key -> streaming Body of GetObject.
 *
 * 设计取向 / Design intent:
 * - 凭证、profile、region 全部交给 boto3 的默认链（AWS_PROFILE / ~/.aws/config 生效）。
 *   Credentials, profile and region are left to boto3's default chain
 *   (AWS_PROFILE and ~/.aws/config apply).
 * - 每次调用新建 Session：boto3 Session 不是线程安全的，数据源实例可被多线程共享。
 *   A fresh Session per call: boto3 sessions are not thread-safe, while one source
 *   instance may be shared by many threads.
 * - 不做重试/分页/缓存；失败（ClientError 等）原样上抛。
 *   No retries, paging or caching; failures (ClientError etc.) propagate unchanged.
 */
"""

import re
from typing import Any, Mapping, Optional

from loadfile.errors import SourceError
from loadfile.sources.interface import SourceProvider, StreamHandle
from loadfile.utils.logger import get_logger
from loadfile.wiring import register_source


_LOG = get_logger(__name__)

#: s3://bucket/key，bucket 与 key 作为命名分组 / bucket and key as named groups.
S3_PATTERN: re.Pattern[str] = re.compile(r"^s3://(?P<bucket>[^/]+)/(?P<key>.*)$")


def split_s3_identifier(identifier: str) -> tuple[str, str]:
    """
    /**
     * @brief 拆分 s3://bucket/key / Split s3://bucket/key.
     *
     * @throws SourceError
     *         identifier 不是 s3://bucket/key 形状 / identifier is not shaped like s3://bucket/key.
     */
    """
    m = S3_PATTERN.match(identifier)
    if m is None:
        raise SourceError(
            f"not an s3://bucket/key identifier: {identifier!r}", identifier=identifier
        )
    return m.group("bucket"), m.group("key")


@register_source("s3")
class S3Source(SourceProvider):
    """
    /**
     * @brief S3 数据源 / S3 source.
     *
     * @param profile_name
     *        可选：显式 AWS profile（默认走 AWS_PROFILE / default）。
     *        Optional explicit AWS profile (defaults to AWS_PROFILE / default).
     * @param region_name
     *        可选：region / Optional region.
     * @param endpoint_url
     *        可选：S3 兼容服务地址（MinIO 等）/ Optional S3-compatible endpoint (MinIO etc.).
     * @param client
     *        可选：注入现成的 S3 client（测试或自定义 botocore 配置）。
     *        Optional ready-made S3 client (tests or custom botocore config).
     */
    """

    name: str = "s3"

    def __init__(
        self,
        profile_name: Optional[str] = None,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self._profile_name = profile_name
        self._region_name = region_name
        self._endpoint_url = endpoint_url
        self._client = client

    def _make_client(self) -> Any:
        """
        /**
         * @brief 获取 S3 client：优先注入的 client，否则新建 Session。
         *        Get an S3 client: the injected one, otherwise from a fresh Session.
         */
        """
        if self._client is not None:
            return self._client

        # 延迟 import：只用本地文件的调用方不需要 boto3 的 import 开销
        import boto3

        session = boto3.Session(profile_name=self._profile_name)
        return session.client(
            "s3",
            region_name=self._region_name,
            endpoint_url=self._endpoint_url,
        )

    def get_stream(
        self, identifier: str, *, parts: Mapping[str, str]
    ) -> StreamHandle:
        bucket = parts.get("bucket")
        key = parts.get("key")
        if bucket is None or key is None:
            # 绑定到了不带命名分组的 pattern，或被当作 fallback 调用
            bucket, key = split_s3_identifier(identifier)

        _LOG.debug("s3 get_object: bucket=%s key=%s", bucket, key)
        resp = self._make_client().get_object(Bucket=bucket, Key=key)
        return StreamHandle.closing(resp["Body"], identifier=identifier)

    def describe(self) -> str:
        extra = []
        if self._profile_name:
            extra.append(f"profile={self._profile_name}")
        if self._endpoint_url:
            extra.append(f"endpoint={self._endpoint_url}")
        return f"S3Source({', '.join(extra)})" if extra else "S3Source"

"""Code-repository captures."""

from knowledge_capture.core import CodeHostClient, ExtractionResult, SourceExtractor, SourceKind
from knowledge_capture.core.errors import ExtractionError


class RepositoryExtractor(SourceExtractor):
    kind = SourceKind.REPOSITORY

    def __init__(self, code_host: CodeHostClient) -> None:
        self.code_host = code_host

    async def extract(self, url: str) -> ExtractionResult:
        metadata = await self.code_host.get_repository(url)
        if not metadata:
            raise ExtractionError("GitHub metadata fetch failed")

        result = ExtractionResult(repo_metadata=metadata)
        result.entities.repos.append(url)
        return result

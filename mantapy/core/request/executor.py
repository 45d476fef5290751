"""
Request execution pipeline.

One logical call runs as a loop of physical attempts. Each attempt goes
through two independent stages: a decorator stage that signs the request
with a fresh Date/Authorization pair and correlation id, and a decision
stage that hands the outcome to the retry policy. The sync and async
executors share both stages and differ only in how the transport is
awaited.
"""
import asyncio
import json
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union

from ..auth.signer import REQUEST_ID_HEADER, RequestSigner, rfc1123_now
from ..config import MantaConfig
from ..exceptions import RemoteError, TransportError
from ..logging import apply_log_level, get_logger
from ..retry import DefaultRetryPolicy, RetryContext, RetryPolicy
from .descriptor import RequestDescriptor, build_url, normalize_path
from .transport import AiohttpTransport, RequestsTransport, TransportResponse


@dataclass
class PreparedRequest:
    """A descriptor with its path normalized and URL resolved."""
    descriptor: RequestDescriptor
    path: str
    url: str
    headers: Dict[str, str]
    body_position: Optional[int] = None

    @property
    def method(self) -> str:
        return self.descriptor.method

    def rewind_body(self):
        """Seek a file-like body back to where the first attempt started."""
        if self.body_position is not None:
            self.descriptor.body.seek(self.body_position)


def parse_error_body(body: bytes) -> Tuple[Optional[str], Optional[str]]:
    """Extract ``(code, message)`` from a JSON error body."""
    details = json.loads(body)
    if not isinstance(details, dict):
        return None, None
    return details.get('code'), details.get('message')


class BaseRequestExecutor:
    """Stages shared by the sync and async executors."""

    def __init__(
        self,
        config: MantaConfig,
        signer: Optional[RequestSigner] = None,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], str] = rfc1123_now
    ):
        """
        Initialize the executor.

        Args:
            config: Client configuration
            signer: Request signer (built from the config when omitted)
            retry_policy: Retry decision strategy
            clock: Source of RFC-1123 timestamps, called once per attempt
        """
        self._config = config
        self._signer = signer or RequestSigner(config.credential)
        self._policy = retry_policy or DefaultRetryPolicy(config.retry.backoff)
        self._clock = clock
        self._logger = get_logger('mantapy.request')
        apply_log_level(config.log_level)

    @property
    def config(self) -> MantaConfig:
        return self._config

    @property
    def signer(self) -> RequestSigner:
        return self._signer

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    def prepare(self, descriptor: RequestDescriptor) -> PreparedRequest:
        """
        Validate and normalize a descriptor before any network I/O.

        Raises:
            InvalidPathError: If the path is not valid UTF-8
        """
        path = normalize_path(descriptor.path)
        body_position = None
        body = descriptor.body
        if body is not None and hasattr(body, 'seek') and hasattr(body, 'tell'):
            body_position = body.tell()

        return PreparedRequest(
            descriptor=descriptor,
            path=path,
            url=build_url(self._config.base_url, path),
            headers=dict(descriptor.headers or {}),
            body_position=body_position,
        )

    def decorate(self, prepared: PreparedRequest) -> Tuple[Dict[str, str], str]:
        """Sign one attempt; returns its headers and correlation id."""
        signed = self._signer.sign(self._clock())
        headers = dict(prepared.headers)
        headers.update(signed.as_dict())
        return headers, signed.request_id

    def decide(
        self,
        prepared: PreparedRequest,
        attempt: int,
        error: Optional[TransportError],
        response: Optional[TransportResponse]
    ) -> Tuple[RetryContext, bool]:
        """Build the retry context for an attempt and consult the policy."""
        context = RetryContext(
            attempt=attempt,
            max_retries=self._config.retry.max_retries,
            error=error,
            response=response,
        )
        retry = self._policy.should_retry(context)

        if retry:
            outcome = str(error) if error is not None else f"HTTP {response.status}"
            self._logger.warning(
                f"Retrying {prepared.method} /{prepared.path} after {outcome}, "
                f"attempt {attempt + 1}"
            )

        return context, retry

    def finish(
        self,
        prepared: PreparedRequest,
        context: RetryContext,
        request_id: str
    ) -> TransportResponse:
        """
        Turn the final attempt into a result.

        Raises:
            TransportError: If the final attempt failed at connection level
            RemoteError: If the final status is >= 400 and the call throws on error
        """
        if context.error is not None:
            self._logger.error(
                f"{prepared.method} /{prepared.path} failed after "
                f"{context.attempt + 1} attempt(s): {context.error}"
            )
            raise context.error

        response = context.response
        if response.status >= 400 and prepared.descriptor.throw_on_error:
            raise self.remote_error(prepared, response, request_id)

        return response

    def remote_error(
        self,
        prepared: PreparedRequest,
        response: TransportResponse,
        request_id: str
    ) -> RemoteError:
        """Build the RemoteError for a failed response."""
        server_code = None
        server_message = None
        try:
            body = response.read()
            if body:
                server_code, server_message = parse_error_body(body)
        except Exception as e:
            self._logger.debug(f"Unable to parse error body for /{prepared.path}: {e}")
        finally:
            response.close()

        echoed_id = response.headers.get(REQUEST_ID_HEADER) or request_id
        error = RemoteError(
            status_code=response.status,
            path=f"/{prepared.path}",
            reason=response.reason,
            server_code=server_code,
            server_message=server_message,
            request_id=echoed_id,
        )
        self._logger.debug(f"{prepared.method} /{prepared.path}: {error}")
        return error

    def _log_attempt(self, prepared: PreparedRequest, attempt: int, request_id: str):
        self._logger.debug(
            f"{prepared.method} {prepared.url} (attempt {attempt + 1}, request id {request_id})"
        )


class RequestExecutor(BaseRequestExecutor):
    """
    Synchronous request executor.

    Descriptors flagged ``asynchronous`` run the same pipeline on a worker
    thread and return a ``concurrent.futures.Future``.

    Example:
        >>> executor = RequestExecutor(config)
        >>> response = executor.execute(RequestDescriptor('HEAD', '/acct/stor'))
        >>> response.status
        200
    """

    def __init__(
        self,
        config: MantaConfig,
        transport: Optional[RequestsTransport] = None,
        **kwargs
    ):
        super().__init__(config, **kwargs)
        self._transport = transport or RequestsTransport(config)
        self._pool: Optional[ThreadPoolExecutor] = None

    @property
    def transport(self):
        return self._transport

    def execute(
        self,
        descriptor: RequestDescriptor
    ) -> Union[TransportResponse, 'Future[TransportResponse]']:
        """
        Execute a call with signing and retries.

        Returns:
            The final response, or a Future of it for asynchronous descriptors

        Raises:
            InvalidPathError: If the path is malformed (no request is sent)
            TransportError: If connection failures exhaust the retries
            RemoteError: If the final status is >= 400 and ``throw_on_error``
        """
        if descriptor.asynchronous:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self._config.max_workers,
                    thread_name_prefix='mantapy'
                )
            return self._pool.submit(self._execute, descriptor)
        return self._execute(descriptor)

    def _execute(self, descriptor: RequestDescriptor) -> TransportResponse:
        prepared = self.prepare(descriptor)
        attempt = 0

        while True:
            headers, request_id = self.decorate(prepared)
            prepared.rewind_body()
            self._log_attempt(prepared, attempt, request_id)

            error = None
            response = None
            try:
                response = self._transport.send(
                    prepared.method,
                    prepared.url,
                    headers,
                    body=descriptor.body,
                    params=descriptor.params,
                    stream=descriptor.stream,
                )
            except TransportError as e:
                error = e

            context, retry = self.decide(prepared, attempt, error, response)
            if not retry:
                return self.finish(prepared, context, request_id)

            if response is not None:
                response.close()
            self._policy.wait(context)
            attempt += 1

    def close(self):
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
        self._transport.close()


class AsyncRequestExecutor(BaseRequestExecutor):
    """
    Asynchronous request executor.

    The network call is the only suspension point; signing runs inline.
    """

    def __init__(
        self,
        config: MantaConfig,
        transport: Optional[AiohttpTransport] = None,
        **kwargs
    ):
        super().__init__(config, **kwargs)
        self._transport = transport or AiohttpTransport(config)

    @property
    def transport(self):
        return self._transport

    async def execute(self, descriptor: RequestDescriptor) -> Any:
        """
        Execute a call with signing and retries.

        Descriptors flagged ``asynchronous`` are scheduled as a task and the
        task is returned without awaiting it.

        Raises:
            InvalidPathError: If the path is malformed (no request is sent)
            TransportError: If connection failures exhaust the retries
            RemoteError: If the final status is >= 400 and ``throw_on_error``
        """
        if descriptor.asynchronous:
            return asyncio.ensure_future(self._execute(descriptor))
        return await self._execute(descriptor)

    async def _execute(self, descriptor: RequestDescriptor) -> TransportResponse:
        prepared = self.prepare(descriptor)
        attempt = 0

        while True:
            headers, request_id = self.decorate(prepared)
            prepared.rewind_body()
            self._log_attempt(prepared, attempt, request_id)

            error = None
            response = None
            try:
                response = await self._transport.send(
                    prepared.method,
                    prepared.url,
                    headers,
                    body=descriptor.body,
                    params=descriptor.params,
                    stream=descriptor.stream,
                )
            except TransportError as e:
                error = e

            context, retry = self.decide(prepared, attempt, error, response)
            if not retry:
                return self.finish(prepared, context, request_id)

            await self._policy.wait_async(context)
            attempt += 1

    async def close(self):
        await self._transport.close()

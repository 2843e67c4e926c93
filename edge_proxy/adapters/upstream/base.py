from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class UpstreamResponse:
	"""Status code and decoded JSON body returned by the upstream API."""

	status_code: int
	body: Any


class AbstractUpstreamClient(ABC):
	"""Interface for clients that forward a Messages request upstream."""

	@abstractmethod
	async def forward(self, payload: dict[str, Any]) -> UpstreamResponse:
		"""Send the payload upstream with server-side credentials.

		Args:
			payload: Sanitized request body.

		Returns:
			UpstreamResponse: The upstream status and JSON body, relayed as-is
				for both success and error statuses.

		Raises:
			ConfigurationAppError: If credentials are not configured.
			UpstreamAppError: If the upstream cannot be reached or the body is not JSON.
		"""
		...

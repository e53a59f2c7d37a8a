"""Test doubles shared across the statuspages test suite."""

from dataclasses import dataclass, field
from typing import List

from statuspages.service import ResponseWriter, Service, StatusRequest


@dataclass
class MockService(Service):
    """Service returning canned output and recording detail page calls.

    Being a dataclass it compares by value, which the registry must ignore.
    """
    fail_summary: bool = False
    fail_detail: bool = False
    detail_calls: List[str] = field(default_factory=list)

    def summary_fragment(self, name: str) -> str:
        if self.fail_summary:
            raise RuntimeError(f"summary of {name} failed")
        return f"<p>{name} service</p>"

    def render_detail_page(self, name: str, response: ResponseWriter,
                           request: StatusRequest) -> None:
        self.detail_calls.append(name)
        if self.fail_detail:
            raise RuntimeError(f"detail of {name} failed")
        response.write(f"{name} service status page")


def get_request(**params: str) -> StatusRequest:
    return StatusRequest(query={k: [v] for k, v in params.items()})


def post_request(**params: str) -> StatusRequest:
    return StatusRequest(method="POST", form={k: [v] for k, v in params.items()})

"""GraphQL documents of the visualization service."""

from typing import Any, TypedDict

VISUALIZE_MUTATION = """\
mutation VisualizeMutation($text: String!, $driver: Driver!) {
  visualize(input: { text: $text, type: HCL, driver: $driver }) {
    node {
      extID
    }
  }
}
"""

SHARE_VISUALIZATION_MUTATION = """\
mutation ShareVisualizationMutation($extID: String!) {
  shareVisualization(input: { fromID: $extID }) {
    success
  }
}
"""


class GraphQLRequest(TypedDict):
    """Body of a GraphQL request."""

    query: str
    variables: dict[str, Any]


def visualize_request(document: bytes, driver_tag: str) -> GraphQLRequest:
    """Build the request uploading a schema document."""
    return GraphQLRequest(
        query=VISUALIZE_MUTATION,
        variables={"text": document.decode(), "driver": driver_tag},
    )


def share_request(ext_id: str) -> GraphQLRequest:
    """Build the request making an uploaded visualization public."""
    return GraphQLRequest(
        query=SHARE_VISUALIZATION_MUTATION,
        variables={"extID": ext_id},
    )

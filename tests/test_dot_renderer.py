import unittest

from dagviewer.core.models import Graph, GraphNode
from dagviewer.io.dot_renderer import render_dot

from dag_fixtures import tx_hash


class DotRendererTests(unittest.TestCase):
    def test_empty_graph(self) -> None:
        self.assertEqual(render_dot(Graph()), "digraph {\n}")

    def test_sorted_output(self) -> None:
        a, b, c = sorted([tx_hash("a"), tx_hash("b"), tx_hash("c")])
        g = Graph()
        # insert out of order
        g.add_node(GraphNode(tx=c, did="did:example:c", clock=2, notes=("update",)))
        g.add_node(GraphNode(tx=a, did="did:example:a", clock=0, notes=("created", "deactivated")))
        g.add_node(GraphNode(tx=b, did="did:example:b", clock=1))
        g.add_edge(c, b)
        g.add_edge(b, a)
        g.add_edge(c, a)
        g.add_edge(c, a)

        out = render_dot(g)

        self.assertEqual(
            out.splitlines(),
            [
                "digraph {",
                f'\tnode_{a} [label="{a}\\ndid:example:a\\nLC=0\\ncreated,deactivated"]',
                f'\tnode_{b} [label="{b}\\ndid:example:b\\nLC=1"]',
                f'\tnode_{c} [label="{c}\\ndid:example:c\\nLC=2\\nupdate"]',
                f"\tnode_{b} -> node_{a}",
                f"\tnode_{c} -> node_{a}",
                f"\tnode_{c} -> node_{b}",
                "}",
            ],
        )

    def test_first_node_insert_wins(self) -> None:
        g = Graph()
        first = g.add_node(GraphNode(tx=tx_hash("a"), did="did:example:a", clock=0))
        again = g.add_node(GraphNode(tx=tx_hash("a"), did="did:example:other", clock=9))

        self.assertIs(first, again)
        self.assertEqual(g.nodes[tx_hash("a")].did, "did:example:a")


if __name__ == "__main__":
    unittest.main()

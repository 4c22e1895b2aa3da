"""
Node handle: navigation, attributes, values, text and identity.
"""

from datetime import datetime, timezone

import pytest

from htmlnav import HTMLDocument, HTMLNode, NodeKind, XMLDocument


def all_nodes(doc):
    return [HTMLNode(doc, index) for index in range(len(doc.tree))]


class TestNavigation:
    def test_parent_of_root_is_document_node(self, scenario):
        assert scenario.root.parent == scenario.document_node
        assert scenario.document_node.parent is None

    def test_first_and_last_child(self, scenario_div):
        first = scenario_div.first_child
        last = scenario_div.last_child
        assert first.id_value == "x"
        assert last.string_value == "Bye"
        assert first.previous_sibling is None
        assert last.next_sibling is None

    def test_sibling_links_are_symmetric(self, page):
        for node in all_nodes(page):
            if node.next_sibling is not None:
                assert node.next_sibling.previous_sibling == node
            if node.previous_sibling is not None:
                assert node.previous_sibling.next_sibling == node

    def test_children_point_back_to_parent(self, page):
        for node in all_nodes(page):
            for child in node.children:
                assert child.parent == node

    def test_children_skip_text(self):
        doc = HTMLDocument("<div>one<span>two</span>three<!--note--></div>")
        div = doc.body.child_of_tag("div")
        assert [child.kind for child in div.children] == [NodeKind.ELEMENT, NodeKind.COMMENT]
        assert div.child_count == 1
        assert div.has_child_nodes()

    def test_child_at(self, scenario_div):
        assert scenario_div.child_at(0).string_value == "Hi"
        assert scenario_div.child_at(1).string_value == "Bye"
        assert scenario_div.child_at(2) is None
        assert scenario_div.child_at(-1) is None

    def test_leaf_has_no_children(self, scenario_div):
        text = scenario_div.first_child.first_child
        assert text.is_text_node
        assert text.children == []
        assert text.child_count == 0
        assert not text.has_child_nodes()


class TestKind:
    def test_document_node_kinds(self, scenario, feed):
        assert scenario.document_node.kind == NodeKind.HTML_DOCUMENT
        assert scenario.document_node.element_type == "HTML Document"
        assert scenario.document_node.is_document_node
        assert feed.document_node.kind == NodeKind.DOCUMENT

    def test_element_and_text(self, scenario_div):
        p = scenario_div.first_child
        assert p.is_element_node
        assert p.element_type == "Element"
        assert p.tag_name == "p"
        assert p.first_child.is_text_node
        assert p.first_child.tag_name is None

    def test_attribute_node(self, scenario_div):
        (attr,) = scenario_div.first_child.attribute_nodes
        assert attr.is_attribute_node
        assert attr.tag_name == "id"
        assert attr.string_value == "x"
        assert attr.parent == scenario_div.first_child

    def test_comment_and_pi(self, feed):
        comment = feed.root.last_child
        while comment.kind != NodeKind.COMMENT:
            comment = comment.previous_sibling
        assert comment.raw_text_content == " trailing comment "
        pi_doc = XMLDocument('<root><?render fast?></root>')
        pi = pi_doc.root.first_child
        assert pi.kind == NodeKind.PI
        assert pi.tag_name == "render"

    def test_repr(self, scenario_div):
        assert repr(scenario_div) == f"<HTMLNode Element 'div' #{scenario_div.index}>"
        assert "number of children: 2" in scenario_div.describe()


class TestAttributes:
    def test_attribute_round_trip(self):
        doc = HTMLDocument('<div id="main" data-count="3" title="a &amp; b" class="x  y"></div>')
        div = doc.body.child_of_tag("div")
        assert div.attribute("id") == "main"
        assert div.attribute("data-count") == "3"
        assert div.attribute("title") == "a & b"
        assert div.attribute("class") == "x  y"
        assert div.attribute("missing") is None

    def test_attribute_map_keeps_source_order(self, page):
        li = page.root.descendant_of_tag("li")
        assert li.attributes == {"class": "item", "data-sku": "A-1"}

    def test_convenience_accessors(self, page):
        main = page.root.descendant_with_id("main")
        assert main.id_value == "main"
        assert main.class_value == "content"
        link = main.descendant_of_tag("a")
        assert link.href_value == "https://example.com/a"
        assert link.src_value is None
        img = HTMLDocument('<img src="/logo.png">').root.descendant_of_tag("img")
        assert img.src_value == "/logo.png"

    def test_text_node_has_no_attributes(self, scenario_div):
        text = scenario_div.first_child.first_child
        assert text.attributes == {}
        assert text.attribute("id") is None


class TestValues:
    @pytest.fixture
    def values(self):
        return HTMLDocument(
            "<div>"
            "<span id='int'>42</span>"
            "<span id='float'> 3.5 </span>"
            "<span id='bad'>n/a</span>"
            "<span id='date'>2024-05-01</span>"
            "<span id='nested'><b>7</b>.25</span>"
            "<span id='spaces'>  a \n  b  </span>"
            "</div>"
        )

    def test_integer_value(self, values):
        assert values.root.descendant_with_id("int").integer_value == 42
        assert values.root.descendant_with_id("bad").integer_value is None

    def test_float_value(self, values):
        assert values.root.descendant_with_id("float").float_value == 3.5
        assert values.root.descendant_with_id("bad").float_value is None

    def test_value_needs_text_child(self, values):
        nested = values.root.descendant_with_id("nested")
        assert nested.raw_string_value is None
        assert nested.float_value is None
        assert nested.content_float_value == 7.25

    def test_string_values(self, values):
        spaces = values.root.descendant_with_id("spaces")
        assert spaces.raw_string_value == "  a \n  b  "
        assert spaces.string_value == "a \n  b"
        assert spaces.string_value_collapsing_whitespace == "a b"

    def test_date_value(self, values):
        node = values.root.descendant_with_id("date")
        assert node.date_value("%Y-%m-%d") == datetime(2024, 5, 1)
        assert node.date_value("%Y-%m-%d", timezone.utc) == datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert node.date_value("%d/%m/%Y") is None
        assert node.content_date_value("%Y-%m-%d") == datetime(2024, 5, 1)


class TestTextContent:
    @pytest.fixture
    def div(self):
        return HTMLDocument("<div>  Hello <b>big</b>   world </div>").body.child_of_tag("div")

    def test_raw_and_stripped(self, div):
        assert div.raw_text_content == "  Hello big   world "
        assert div.text_content == "Hello big   world"
        assert div.text_content_collapsing_whitespace == "Hello big world"

    def test_pieces(self, div):
        assert div.text_content_of_children == ["Hello", "big", "world"]
        assert div.text_content_of_descendants == ["Hello", "big", "world"]

    def test_descendant_pieces_are_not_repeated(self, page):
        note = page.root.descendant_with_class("note")
        assert note.text_content_of_descendants == ["Prices", "may", "change."]

    def test_to_text(self, div):
        assert div.to_text() == "Hello big world"
        assert div.to_text(separator="|") == "Hello|big|world"
        assert div.to_text(separator="", strip=False) == "  Hello big   world "


class TestMarkup:
    def test_html_string(self, scenario_div):
        assert scenario_div.first_child.html_string == '<p id="x">Hi</p>'
        assert scenario_div.first_child.first_child.html_string == "Hi"
        assert scenario_div.first_child.attribute_nodes[0].html_string == 'id="x"'

    def test_html_string_excludes_tail(self):
        doc = HTMLDocument("<div><b>bold</b> after</div>")
        assert doc.root.descendant_of_tag("b").html_string == "<b>bold</b>"

    def test_html_content_uses_document_encoding(self, feed):
        title = feed.root.descendant_of_tag("title")
        assert title.html_content == "<title>First</title>"

    def test_html_content_has_no_declaration(self):
        doc = XMLDocument(b'<?xml version="1.0" encoding="ISO-8859-1"?><r><a>caf\xe9&#9731;</a></r>')
        a = doc.root.descendant_of_tag("a")
        assert a.html_content == "<a>café&#9731;</a>"
        assert a.html_string == "<a>café☃</a>"

    def test_text_is_escaped(self):
        doc = HTMLDocument("<p>a &lt; b</p>")
        text = doc.root.descendant_of_tag("p").first_child
        assert text.raw_text_content == "a < b"
        assert text.html_string == "a &lt; b"


class TestIdentity:
    def test_equal_handles(self, scenario):
        assert scenario.body == scenario.root.child_of_tag("body")
        assert hash(scenario.body) == hash(scenario.root.child_of_tag("body"))
        assert len({scenario.body, scenario.root.child_of_tag("body")}) == 1

    def test_handles_from_different_documents_differ(self):
        first = HTMLDocument("<p>x</p>")
        second = HTMLDocument("<p>x</p>")
        assert first.root != second.root
        with pytest.raises(ValueError):
            first.root.compare_document_order(second.root)

    def test_document_order(self, scenario_div):
        first, second = scenario_div.children
        assert first < second
        assert scenario_div < first
        assert first.compare_document_order(second) == -1
        assert second.compare_document_order(first) == 1
        assert first.compare_document_order(first) == 0

    def test_order_matches_search_order(self, page):
        nodes = page.root.descendants_with_attribute("class")
        assert sorted(nodes) == nodes
        for earlier, later in zip(nodes, nodes[1:]):
            assert earlier.compare_document_order(later) == -1

    def test_index_out_of_range(self, scenario):
        with pytest.raises(IndexError):
            HTMLNode(scenario, len(scenario.tree))

    def test_handle_keeps_document_alive(self):
        node = HTMLDocument("<p id='kept'>still here</p>").root.descendant_of_tag("p")
        assert node.id_value == "kept"
        assert node.document.root.tag_name == "html"

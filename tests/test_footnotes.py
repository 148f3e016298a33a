"""
Footnote pass tests
"""

from htmlua.lib.document import document_parse
from htmlua.lib.passes import footnotes_generate
from htmlua.models.markers import Footnote


PAGE = """
<body>
    <p>First claim<footnote>um actually</footnote> and second<footnote>no</footnote>.</p>
    <footnotecontainer></footnotecontainer>
</body>"""


class TestFootnotePass:
    """Numbering, references and definitions"""

    def test_references_and_definitions(self):
        tree = document_parse(PAGE)
        footnotes_generate(tree)

        sup1 = tree.select_one("sup#ft-sup-1")
        sup2 = tree.select_one("sup#ft-sup-2")
        assert sup1["title"] == "um actually"
        assert sup2["title"] == "no"
        assert sup1.get_text() == "1"
        assert sup1.parent.name == "a"
        assert sup1.parent["href"] == "#ft-text-1"

        text1 = tree.select_one("p#ft-text-1")
        text2 = tree.select_one("p#ft-text-2")
        assert "um actually" in text1.get_text()
        assert text1.get_text() == "1: um actually"
        assert text2.select_one("a")["href"] == "#ft-sup-2"

    def test_markers_and_container_removed(self):
        tree = document_parse(PAGE)
        footnotes_generate(tree)

        assert tree.select("footnote") == []
        assert tree.select("footnotecontainer") == []

    def test_reference_follows_annotated_text_position(self):
        """The marker is replaced by its reference, inline"""
        tree = document_parse(PAGE)
        footnotes_generate(tree)

        paragraph = tree.select_one("body > p")
        assert paragraph.get_text() == "First claim1 and second2."

    def test_definitions_in_document_order_across_nesting(self):
        """Numbering follows pre-order traversal regardless of depth"""
        tree = document_parse("""
<div>
    <section><div><p>deep<footnote>first</footnote></p></div></section>
    <p>shallow<footnote>second</footnote></p>
    <ul><li><footnote>third</footnote></li></ul>
</div>
<div id="notes"><footnotecontainer></footnotecontainer></div>""")
        footnotes_generate(tree)

        definitions = tree.select("#notes > p")
        assert [p["id"] for p in definitions] == ["ft-text-1", "ft-text-2", "ft-text-3"]
        assert [p.get_text() for p in definitions] == ["1: first", "2: second", "3: third"]

    def test_footnote_inside_footnote_keeps_its_reference(self):
        """Both references land after the outer marker, in order"""
        tree = document_parse(
            '<p id="claim">a<footnote>outer<footnote>inner</footnote></footnote>b</p>'
            "<footnotecontainer></footnotecontainer>"
        )
        footnotes_generate(tree)

        claim = tree.select_one("#claim")
        assert [sup["id"] for sup in claim.select("sup")] == ["ft-sup-1", "ft-sup-2"]
        assert claim.get_text() == "a12b"
        assert tree.select_one('a[href="#ft-sup-2"]') is not None
        assert [p.get_text() for p in tree.select('p[id^="ft-text-"]')] == [
            "1: outerinner",
            "2: inner",
        ]
        assert tree.select("footnote") == []

    def test_no_container_leaves_tree_unchanged(self):
        source = "<p>claim<footnote>note</footnote></p>"
        tree = document_parse(source)
        footnotes_generate(tree)

        assert str(tree) == source

    def test_extra_containers_removed(self):
        tree = document_parse(
            "<p>a<footnote>x</footnote></p>"
            '<div id="first"><footnotecontainer></footnotecontainer></div>'
            '<div id="second"><footnotecontainer></footnotecontainer></div>'
        )
        footnotes_generate(tree)

        assert tree.select_one("#first #ft-text-1") is not None
        assert tree.select_one("#second").contents == []
        assert tree.select("footnotecontainer") == []

    def test_title_holds_unescaped_text(self):
        tree = document_parse('<p><footnote>a "quoted" &amp; note</footnote></p><footnotecontainer></footnotecontainer>')
        footnotes_generate(tree)

        assert tree.select_one("#ft-sup-1")["title"] == 'a "quoted" & note'


class TestFootnoteModel:

    def test_ids(self):
        footnote = Footnote(index=3, text="t")
        assert footnote.sup_id == "ft-sup-3"
        assert footnote.text_id == "ft-text-3"

"""Tests for proximity signal extraction."""

from product_distill.reducer import extract_plain_text, parse_document, reduce_document
from product_distill.signals import (
    CONTEXT_ANCESTOR_LEVELS,
    PROXIMITY_WINDOW,
    evidence_text,
    extract_signals,
    find_signal_term,
    has_number_near_term,
    normalize_terms,
)


def _doc(body):
    return reduce_document(parse_document(f"<html><body>{body}</body></html>"))


def test_constants_are_the_documented_heuristics():
    assert PROXIMITY_WINDOW == 30
    assert CONTEXT_ANCESTOR_LEVELS == 2


def test_number_next_to_term_is_a_hit():
    blocks = extract_signals(_doc("<div><p>Rated 150 watts output</p></div>"), {"watts"})
    assert [block.text for block in blocks] == ["Rated 150 watts output"]
    assert blocks[0].origin_token == "watts"


def test_term_without_number_is_not_a_hit():
    doc = _doc("<div><p>watts are great but no numbers here</p></div>")
    assert extract_signals(doc, {"watts"}) == []


def test_number_outside_window_is_ignored():
    text = "watts" + " filler" * 10 + " 150"
    assert not has_number_near_term(text, "watts")
    assert has_number_near_term("5" + " " * 29 + "watts", "watts")
    assert not has_number_near_term("5" + " " * 30 + "watts", "watts")


def test_window_is_measured_from_term_end_on_the_right():
    assert has_number_near_term("watts" + " " * 29 + "7", "watts")
    assert not has_number_near_term("watts" + " " * 30 + "7", "watts")


def test_matching_is_case_insensitive():
    assert find_signal_term("Power: 20 WATTS", normalize_terms(["Watts"])) == "watts"


def test_longest_term_is_reported_first():
    assert normalize_terms(["w", "watts", "v", "W"]) == ("watts", "v", "w")
    assert find_signal_term("120 watts", normalize_terms(["w", "watts"])) == "watts"


def test_context_is_captured_two_levels_up():
    doc = _doc(
        "<section><div>\n<p><span>Input 240 V</span></p>\n<p>Made in Canada</p>\n</div></section>"
    )
    blocks = extract_signals(doc, {"v"})
    # span -> p -> div
    assert [block.text for block in blocks] == ["Input 240 V Made in Canada"]
    assert blocks[0].element.name == "div"


def test_hits_without_two_ancestors_are_discarded():
    # The text node's parent is <body>; <html> is one level up and the
    # document object does not count as an element.
    doc = _doc("Rated 150 watts output")
    assert extract_signals(doc, {"watts"}) == []


def test_identical_context_blocks_are_deduplicated():
    doc = _doc(
        "<div class='specs'><p><span>12 V</span> <span>3 A</span></p></div>"
    )
    blocks = extract_signals(doc, {"v", "a"})
    assert len(blocks) == 1
    assert blocks[0].text == "12 V 3 A"


def test_inline_markup_keeps_the_rating_sentence_intact():
    doc = _doc(
        "<div class='specs'><div><p>Output: <b>45W</b>, 12V, <i>3.75</i>A</p></div></div>"
    )
    blocks = extract_signals(doc, {"watts", "volts", "amps", "w", "v", "a"})
    assert [block.text for block in blocks] == ["Output: 45W, 12V, 3.75A"]
    assert extract_plain_text(doc) == blocks[0].text


def test_first_seen_order_is_preserved():
    doc = _doc(
        "<div><p><b>Output 45 W</b></p></div>"
        "<div><p><b>Input 120 V</b></p></div>"
    )
    texts = [block.text for block in extract_signals(doc, {"w", "v"})]
    assert texts == ["Output 45 W", "Input 120 V"]


def test_power_rating_sentence_end_to_end():
    doc = _doc(
        """
        <div class="product">
          <h1>Travel Charger</h1>
          <div class="specs">
            <p><span>Output: 45W, 12V, 3.75A</span></p>
          </div>
        </div>
        """
    )
    blocks = extract_signals(doc, {"watts", "volts", "amps", "w", "v", "a"})
    assert len(blocks) == 1
    assert "Output: 45W, 12V, 3.75A" in blocks[0].text


def test_empty_terms_give_no_signal():
    assert extract_signals(_doc("<div><p>45 W</p></div>"), set()) == []


def test_evidence_text_joins_blocks_with_newlines():
    doc = _doc(
        "<div><p><b>Output 45 W</b></p></div>"
        "<div><p><b>Input 120 V</b></p></div>"
    )
    assert evidence_text(extract_signals(doc, {"w", "v"})) == "Output 45 W\nInput 120 V"

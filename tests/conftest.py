import pytest

from htmlnav import HTMLDocument, XMLDocument


SCENARIO_HTML = '<div class="a"><p id="x">Hi</p><p>Bye</p></div>'

PAGE_HTML = """<!DOCTYPE html>
<html>
<head><title> My Page </title><meta charset="utf-8"></head>
<body>
<div id="main" class="content">
<h1>Products</h1>
<ul class="items">
<li class="item" data-sku="A-1"><a href="https://example.com/a">Apple</a></li>
<li class="item sale" data-sku="B-2"><a href="http://example.org/b.html">Banana</a></li>
<li class="item" data-sku="C-3"><b>Cherry</b></li>
</ul>
<p class="note">Prices <em>may</em> change.</p>
</div>
<div id="footer"><p>Footer text</p></div>
</body>
</html>
"""

FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed>
  <entry id="1"><title>First</title><count>10</count></entry>
  <entry id="2"><title>Second</title><count>20</count></entry>
  <!-- trailing comment -->
</feed>
"""


@pytest.fixture
def scenario():
    return HTMLDocument(SCENARIO_HTML)


@pytest.fixture
def scenario_div(scenario):
    return scenario.body.child_of_tag("div")


@pytest.fixture
def page():
    return HTMLDocument(PAGE_HTML)


@pytest.fixture
def feed():
    return XMLDocument(FEED_XML)

"""Shared fakes standing in for the browser and model collaborators."""

import asyncio

import pytest

from product_distill.errors import RenderTimeout
from product_distill.models import RenderedPage


class FakeRenderer:
    """Serves canned HTML per URL, tracking how many renders overlap."""

    def __init__(self, pages, failures=None, delay=0.0):
        self.pages = dict(pages)
        self.failures = dict(failures or {})
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def render(self, url, options=None):
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if url in self.failures:
                raise self.failures[url]
            return RenderedPage(html=self.pages[url], final_url=url)
        finally:
            self.in_flight -= 1


def timeout_for(url):
    return RenderTimeout(url, "Timeout 100000ms exceeded")


@pytest.fixture
def product_page():
    return """
    <html>
      <head><title>Acme Solar Panel 365W | Acme Store</title></head>
      <body>
        <nav><a href="/">Home</a></nav>
        <div class="product">
          <h1>Acme Solar Panel 365W</h1>
          <div class="specs">
            <ul><li>Output: 45W, 12V, 3.75A</li></ul>
          </div>
          <img src="/img/acme-panel.jpg" alt="Acme Solar Panel"
               data-rendered-width="800" data-rendered-height="600">
          <img src="/img/site-logo.png" alt="Acme" width="400" height="400">
        </div>
        <footer>Copyright 2024</footer>
      </body>
    </html>
    """

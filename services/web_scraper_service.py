import logging
import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

MAX_TEXT_CHARS = 20000


class ScrapeError(ValueError):
    """The page could not be loaded."""


class WebScraper:
    def __init__(self, timeout: int = 10):
        self.timeout = timeout

    def scrape_url(self, url):
        """
        Fetches a URL and extracts the main text content and a hero image.
        Returns: { 'text': str, 'image_url': str | None }
        """
        headers = {
            'User-Agent': 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36',
            'Accept-Language': 'de-DE,de;q=0.9,en;q=0.8',
        }
        try:
            response = requests.get(url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Scraper Error for {url}: {e}")
            raise ScrapeError(f"Fehler beim Laden der Seite: {e}")

        soup = BeautifulSoup(response.content, 'html.parser')

        # --- 1. Extract Text ---
        for tag in soup(["script", "style", "nav", "footer", "header", "noscript"]):
            tag.decompose()

        text = soup.get_text(separator=' ', strip=True)
        text = text[:MAX_TEXT_CHARS]

        # --- 2. Extract Hero Image ---
        # Priority 1: Open Graph Image
        image_url = None
        og_image = soup.find("meta", property="og:image")
        if og_image and og_image.get("content"):
            image_url = og_image["content"]

        # Priority 2: First absolute image
        if not image_url:
            for img in soup.find_all('img'):
                src = img.get('src')
                if src and src.startswith('http'):
                    image_url = src
                    break

        return {
            "text": text,
            "image_url": image_url
        }

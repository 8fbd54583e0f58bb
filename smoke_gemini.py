"""Send one prompt through the configured Gemini client and print the answer."""
import sys
from pathlib import Path

ROOT = Path(__file__).parent
SRC = ROOT / 'src'
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from jobook.config import load_settings  # noqa: E402
from jobook.gemini_client import GeminiClient, GeminiError  # noqa: E402


def main():
    settings = load_settings()
    client = GeminiClient.from_settings(settings)
    if not client.enabled():
        print('[error] GEMINI_API_KEY is not set. Create .env or set environment variable.')
        sys.exit(1)

    text = ' '.join(sys.argv[1:]) or 'hi'
    model = settings.ranking_model
    try:
        print(client.generate_text(text, model=model))
    except GeminiError as e:
        print('[error] request failed:', e)
        sys.exit(1)


if __name__ == '__main__':
    main()

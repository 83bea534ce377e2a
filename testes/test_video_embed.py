import pytest

from article_migrator.parsers.video_embed import append_video, video_to_iframe


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "http://youtube.com/watch?v=dQw4w9WgXcQ&t=42",
    ],
)
def test_youtube_urls(url):
    out = video_to_iframe(url)
    assert out.startswith('<p><iframe width="560" height="315" src="https://www.youtube.com/embed/dQw4w9WgXcQ"')
    assert "allowfullscreen" in out
    assert out.endswith("</iframe></p>")


def test_vimeo_url():
    out = video_to_iframe("https://vimeo.com/76979871")
    assert 'src="https://player.vimeo.com/video/76979871"' in out
    assert 'width="560" height="315"' in out
    assert 'allow="autoplay; fullscreen; picture-in-picture"' in out


@pytest.mark.parametrize("url", ["https://example.com/video/1", "https://vimeo.com/channels/staff", "", None])
def test_unrecognized(url):
    assert video_to_iframe(url) is None


def test_append_video_separates_with_blank_line():
    body, recognized = append_video("<p>text</p>", "https://vimeo.com/1")
    assert recognized
    assert body.startswith("<p>text</p>\n\n<p><iframe")


def test_append_video_without_url_keeps_body():
    assert append_video("<p>text</p>", None) == ("<p>text</p>", True)


def test_append_unrecognized_video_keeps_body():
    assert append_video("<p>text</p>", "https://example.com/v") == ("<p>text</p>", False)

from pathlib import Path

from PIL import Image

from markdown_document.images import (
    ImageResolver,
    candidate_paths,
    collect_references,
    image_dimensions,
    locate_image,
)


def make_png(path: Path, size: tuple[int, int] = (40, 30)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color="white").save(path)
    return path


def test_candidate_order() -> None:
    base = Path("/docs")
    assert candidate_paths("sub/a.png", base, ("images",)) == [
        base / "sub/a.png",
        base / "images" / "sub/a.png",
        base / "a.png",
        base / "images" / "a.png",
    ]


def test_locate_prefers_source_dir(tmp_path: Path) -> None:
    make_png(tmp_path / "a.png")
    make_png(tmp_path / "images" / "a.png")
    assert locate_image("a.png", tmp_path) == (tmp_path / "a.png").resolve()


def test_locate_falls_back_to_bare_name(tmp_path: Path) -> None:
    make_png(tmp_path / "attachments" / "a.png")
    assert locate_image("elsewhere/a.png", tmp_path) == (tmp_path / "attachments" / "a.png").resolve()
    assert locate_image("nothing.png", tmp_path) is None


def test_image_dimensions(tmp_path: Path) -> None:
    png = make_png(tmp_path / "a.png", (64, 48))
    assert image_dimensions(png) == (64, 48)
    vector = tmp_path / "b.svg"
    vector.write_text("<svg xmlns='http://www.w3.org/2000/svg'/>", encoding="utf-8")
    assert image_dimensions(vector) == (None, None)


def test_collect_references_skips_remote_and_code() -> None:
    text = (
        "![[one.png]]\n"
        "![remote](https://example.com/x.png)\n"
        "![inline](data:image/png;base64,AAAA)\n"
        "`![[code.png]]`\n"
        "![two](two.png)\n"
    )
    references = collect_references(text)
    assert [reference.target for reference in references] == ["one.png", "two.png"]
    assert references[0].embed
    assert not references[1].embed


def test_embed_resolved_from_images_folder(tmp_path: Path) -> None:
    png = make_png(tmp_path / "images" / "photo.png")
    rewrite = ImageResolver(tmp_path).rewrite("Look: ![[photo.png]]")
    expected = png.resolve().as_posix()
    assert rewrite.text == f"Look: ![photo]({expected})"
    assert rewrite.embeds_converted == 1
    assert rewrite.missing == ()
    image = rewrite.images[0]
    assert image.found
    assert image.original_syntax == "![[photo.png]]"
    assert (image.width, image.height) == (40, 30)


def test_explicit_size_wins_over_intrinsic(tmp_path: Path) -> None:
    make_png(tmp_path / "photo.png")
    rewrite = ImageResolver(tmp_path).rewrite("![[photo.png|100]]")
    assert rewrite.text.endswith("{width=100px}")
    assert (rewrite.images[0].width, rewrite.images[0].height) == (100, None)


def test_missing_image_is_kept_and_reported(tmp_path: Path) -> None:
    rewrite = ImageResolver(tmp_path).rewrite('![alt](nope.png "Caption")')
    assert rewrite.missing == ("nope.png",)
    assert not rewrite.images[0].found
    assert rewrite.text == f'![alt]({(tmp_path / "nope.png").as_posix()} "Caption")'


def test_percent_encoded_reference(tmp_path: Path) -> None:
    png = make_png(tmp_path / "images" / "my photo.png")
    rewrite = ImageResolver(tmp_path).rewrite("![pic](my%20photo.png)")
    assert rewrite.images[0].found
    assert rewrite.text == f"![pic](<{png.resolve().as_posix()}>)"


def test_remote_and_code_untouched(tmp_path: Path) -> None:
    text = "![x](https://example.com/a.png)\n```\n![[a.png]]\n```\n"
    rewrite = ImageResolver(tmp_path).rewrite(text)
    assert rewrite.text == text
    assert rewrite.images == ()


def test_parallel_lookup_keeps_document_order(tmp_path: Path) -> None:
    names = [f"img{index}.png" for index in range(6)]
    for name in reversed(names):
        make_png(tmp_path / "assets" / name)
    text = "\n".join(f"![[{name}]]" for name in names + ["img0.png"])
    rewrite = ImageResolver(tmp_path, workers=4).rewrite(text)
    assert [image.absolute_path.name for image in rewrite.images] == names + ["img0.png"]
    assert all(image.found for image in rewrite.images)

from scriptcut.scene_parser import extract_decorations, is_scene_delimiter, parse_scenes


def test_single_block_takes_following_text_as_title():
    scenes = parse_scenes("[00:05-00:10]\nHello")
    assert len(scenes) == 1
    scene = scenes[0]
    assert scene.start_time == 5
    assert scene.end_time == 10
    assert scene.title == "Hello"
    assert scene.content_text == "Hello"
    assert scene.line_number == 1


def test_empty_and_whitespace_input_gives_no_blocks():
    assert parse_scenes("") == []
    assert parse_scenes("   \n\t\n") == []


def test_lines_before_first_delimiter_are_discarded():
    scenes = parse_scenes("preamble\nmore\n[00:01-00:02]\nbody")
    assert [s.title for s in scenes] == ["body"]
    assert scenes[0].line_number == 3


def test_multiple_blocks_in_order_with_trimmed_multiline_content():
    text = "[00:00-00:05]\n\n  first line\nsecond line  \n\n[01:00:00-01:00:30]\nlast\n"
    scenes = parse_scenes(text)
    assert [(s.start_time, s.end_time) for s in scenes] == [(0, 5), (3600, 3630)]
    assert scenes[0].title == "first line\nsecond line"
    assert scenes[1].title == "last"


def test_block_without_content_has_empty_title():
    scenes = parse_scenes("[00:00-00:05]\n[00:05-00:10]\nx")
    assert scenes[0].title == ""
    assert scenes[1].title == "x"


def test_malformed_delimiter_is_ordinary_content():
    scenes = parse_scenes("[00:00-00:05]\n[00:99-01:00]\nafter")
    assert len(scenes) == 1
    assert scenes[0].title == "[00:99-01:00]\nafter"


def test_each_parse_generates_fresh_unique_ids():
    text = "[00:00-00:05]\na\n[00:05-00:10]\nb"
    first, second = parse_scenes(text), parse_scenes(text)
    ids = {s.id for s in first} | {s.id for s in second}
    assert len(ids) == 4


def test_subtitle_heading_and_free_text_are_extracted():
    text = "[00:00-00:05]\n# Opening\n> line one\n> line two\n\nA caption\n\nAnother"
    scene = parse_scenes(text)[0]
    assert scene.metadata == {"heading": "Opening"}
    assert scene.subtitle == "line one\nline two"
    assert [item.text for item in scene.free_text_items] == ["A caption", "Another"]
    assert [item.line_number for item in scene.free_text_items] == [6, 8]


def test_block_remembers_last_loaded_media():
    text = "LOAD v.mp4\n[00:00-00:05]\na\nLOAD other.mp4\n[00:05-00:10]\nb"
    scenes = parse_scenes(text)
    assert [s.media_file_path for s in scenes] == ["v.mp4", "other.mp4"]


def test_scene_blocks_are_immutable_and_copied_with_changes():
    scene = parse_scenes("[00:00-00:05]\na")[0]
    changed = scene.with_changes(title="b")
    assert scene.title == "a"
    assert changed.title == "b"
    assert changed.id == scene.id


def test_extract_decorations_skips_commands_and_stacks_free_text():
    heading, subtitle, items = extract_decorations("# Top\none\n\nCUT 00:00:01.000\ntwo\n\n# second heading", 10)
    assert heading == "Top"
    assert subtitle is None
    assert [i.text for i in items] == ["one", "two", "# second heading"]
    assert [i.y for i in items] == [0.3, 0.3 + 0.15, 0.3 + 0.30]
    assert items[0].line_number == 11


def test_is_scene_delimiter():
    assert is_scene_delimiter("  [00:05-00:10]  ")
    assert not is_scene_delimiter("")
    assert not is_scene_delimiter("HIDE 00:00:05.000 00:00:15.000")

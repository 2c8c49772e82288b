from scriptcut.header_parser import generate_header_text, parse_header
from scriptcut.models import ProjectConfig


def test_header_fields_are_read_until_separator():
    text = "\n".join([
        'PROJECT "Trip Vlog"',
        "# comment",
        "resolution 1280x720",
        "FRAMERATE 60",
        'DEFAULT_FONT "Noto Sans"',
        "DEFAULT_FONT_SIZE 32",
        "DEFAULT_TITLE_COLOR #ff0000",
        "DEFAULT_BACKGROUND_ALPHA 0.5",
        "SOMETHING else",
        "===",
        "[00:00-00:05]",
        "Body",
    ])
    config, body_start_line = parse_header(text)
    assert body_start_line == 10
    assert config.project_name == "Trip Vlog"
    assert config.resolution == "1280x720"
    assert config.frame_rate == 60
    assert config.default_font == "Noto Sans"
    assert config.default_font_size == 32
    assert config.default_title_color == "#FF0000"
    assert config.default_subtitle_color == "#FFFFFF"
    assert config.default_background_alpha == 0.5


def test_dash_separator_is_accepted():
    config, body_start_line = parse_header('PROJECT "A"\n---\nbody')
    assert config.project_name == "A"
    assert body_start_line == 2


def test_without_separator_everything_is_body():
    config, body_start_line = parse_header('PROJECT "Ignored"\n[00:00-00:05]\nBody')
    assert config == ProjectConfig()
    assert body_start_line == 0
    assert parse_header("") == (ProjectConfig(), 0)


def test_invalid_values_keep_defaults():
    config, _ = parse_header("RESOLUTION 0x720\nFRAMERATE 0\n===")
    assert config.resolution == "1920x1080"
    assert config.frame_rate == 30


def test_generated_header_parses_back():
    original = ProjectConfig(project_name="Demo", resolution_width=3840, resolution_height=2160,
                             frame_rate=24, default_background_alpha=0.6)
    text = generate_header_text(original) + "[00:00-00:05]\nHello"
    config, body_start_line = parse_header(text)
    assert config == original
    assert body_start_line == 9

from imagickutils import config


def test_image_suffixes_are_immutable() -> None:
    assert isinstance(config.IMAGE_SUFFIXES, frozenset)
    assert ".jpg" in config.IMAGE_SUFFIXES


def test_downsize_default_is_a_choice() -> None:
    assert config.DEFAULT_DOWNSIZE_TO in config.DOWNSIZE_CHOICES

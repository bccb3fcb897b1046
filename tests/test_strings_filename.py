from utils.strings import filename_from_url

def test_last_path_segment():
    assert filename_from_url("https://cdn.test/images/2020/cat.jpg") == "cat.jpg"

def test_query_and_fragment_ignored():
    assert filename_from_url("https://cdn.test/a/b.png?w=300&h=200#top") == "b.png"

def test_percent_decoded():
    assert filename_from_url("https://cdn.test/a/my%20photo.png") == "my photo.png"

def test_trailing_slash_ignored():
    assert filename_from_url("https://cdn.test/a/folder/") == "folder"

def test_no_path_is_empty():
    assert filename_from_url("https://cdn.test") == ""
    assert filename_from_url("") == ""

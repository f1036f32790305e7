from upjet.description import TERRAFORM_KEYWORD, filter_description


def test_sentence_with_keyword_is_removed():
    description = "Creates a bucket. Managed by terraform today. Supports tags"
    result = filter_description(description, "terraform")
    assert "terraform" not in result.lower()
    assert result.split(".") == ["Creates a bucket", " Supports tags"]


def test_description_without_keyword_is_unchanged():
    description = "Creates a bucket. Supports tags."
    assert filter_description(description, "terraform") == description


def test_sentence_match_ignores_case_of_sentence():
    result = filter_description("Bucket. Uses TERRAFORM", "terraform")
    assert result == "Bucket"


def test_uppercase_keyword_never_matches_lowered_sentence():
    description = "Uses Terraform. Other text"
    assert filter_description(description, "Terraform") == description


def test_all_sentences_filtered_replaces_keyword():
    assert (
        filter_description("Manages terraform state", "terraform")
        == "manages Upbound official provider state"
    )


def test_default_keyword_constant_filters():
    result = filter_description("Bucket. Built with terraform", TERRAFORM_KEYWORD)
    assert result == "Bucket"


def test_result_sentences_are_subset_of_input():
    description = "One. Two terraform. Three. terraform four. Five"
    result = filter_description(description, "terraform")
    original = description.split(".")
    parts = result.split(".")
    assert all(part in original for part in parts)
    assert len(parts) == 3
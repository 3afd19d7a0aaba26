from gait.utils.message_extractor import MessageExtractor, message_extractor


def test_plain_subject():
    assert message_extractor.extract_commit_message("fix(api): handle null response\n") == "fix(api): handle null response"


def test_subject_and_body_are_separated_by_blank_line():
    raw = "feat(auth): add OAuth login\n- Added Google OAuth\n\n- Token refresh\n\nCloses #45\n"
    assert message_extractor.extract_commit_message(raw) == (
        "feat(auth): add OAuth login\n\n- Added Google OAuth\n- Token refresh\nCloses #45"
    )


def test_think_blocks_are_removed():
    raw = "<think>\nThe diff adds a test.\n</think>\n\ntest(core): cover extractor"
    assert message_extractor.extract_commit_message(raw) == "test(core): cover extractor"


def test_unclosed_leading_thinking_is_removed():
    raw = "let me look at this diff...</thinking>\nrefactor: simplify loop"
    assert message_extractor.extract_commit_message(raw) == "refactor: simplify loop"


def test_ollama_cli_thinking_markers_and_spinner():
    raw = "\x1b[?25l⠋ \x1b[?25hThinking...\nhmm\n...done thinking.\n\ndocs: update readme"
    assert message_extractor.extract_commit_message(raw) == "docs: update readme"


def test_code_fence_and_label_are_stripped():
    raw = "```text\nCommit message: **chore(deps): bump aiohttp**\n```"
    assert message_extractor.extract_commit_message(raw) == "chore(deps): bump aiohttp"


def test_quoted_subject():
    extractor = MessageExtractor()
    assert extractor.extract_commit_message('"style: format code"') == "style: format code"


def test_empty_or_whitespace_returns_none():
    assert message_extractor.extract_commit_message("") is None
    assert message_extractor.extract_commit_message("  \r\n \n") is None
    assert message_extractor.extract_commit_message("<think>only thoughts</think>") is None


def test_quotes_inside_subject_are_kept():
    assert message_extractor.extract_commit_message('fix(cli): quote "dry-run"') == 'fix(cli): quote "dry-run"'
    assert message_extractor.extract_commit_message("docs: mention `gait init`") == "docs: mention `gait init`"
    assert message_extractor.extract_commit_message("`chore: tidy`") == "chore: tidy"

from app.services import content_gate


def test_clean_script_passes():
    script = b"<?php\necho 'hello';\n$data = json_decode(file_get_contents('php://input'));\n"
    assert content_gate.scan(script) == set()


def test_detects_disallowed_calls():
    script = b"<?php\nsystem('ls');\n$x = base64_decode ( $payload );\n"
    assert content_gate.scan(script) == {"system", "base64_decode"}


def test_is_case_insensitive():
    assert content_gate.scan("<?php EVAL($code);") == {"eval"}


def test_whole_word_only():
    # shell_exec must not also be reported as exec
    assert content_gate.scan("<?php shell_exec('id');") == {"shell_exec"}
    assert content_gate.scan("<?php my_system_check();") == set()


def test_name_without_call_is_allowed():
    assert content_gate.scan("<?php // the system is down") == set()


def test_undecodable_bytes_do_not_fail():
    assert content_gate.scan(b"\xff\xfe<?php passthru('id');") == {"passthru"}

from eventcert.shared.environment import ProcessEnvironment


def test_plain_linux_box_is_unconstrained():
    env = ProcessEnvironment({"HOME": "/home/user"}, platform="linux")
    assert env.is_constrained() is False
    assert env.is_windows_like() is False


def test_serverless_markers_mean_constrained():
    for marker in ("VERCEL", "NETLIFY", "AWS_LAMBDA_FUNCTION_NAME"):
        assert ProcessEnvironment({marker: "1"}, platform="linux").is_constrained()


def test_production_linux_without_user_home():
    env = {"FLASK_ENV": "production", "HOME": "/var/task"}
    assert ProcessEnvironment(env, platform="linux").is_constrained()
    env["HOME"] = "/home/user"
    assert not ProcessEnvironment(env, platform="linux").is_constrained()
    assert not ProcessEnvironment({"NODE_ENV": "production"}, platform="darwin").is_constrained()


def test_explicit_override_wins():
    assert ProcessEnvironment({"CERT_CONSTRAINED": "yes"}, platform="linux").is_constrained()
    assert not ProcessEnvironment(
        {"CERT_CONSTRAINED": "0", "VERCEL": "1"}, platform="linux"
    ).is_constrained()


def test_windows_like_platforms():
    assert ProcessEnvironment({}, platform="win32").is_windows_like()
    assert ProcessEnvironment({}, platform="cygwin").is_windows_like()
    assert not ProcessEnvironment({}, platform="darwin").is_windows_like()

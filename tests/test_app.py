"""
Tests for app.py - posting workflow and CLI commands.
"""

import json

import pytest

from afgjobs.app import Board, apply_posting_defaults, main, post_job
from afgjobs.repository import InMemoryRepository, RepositoryError
from afgjobs.storage import DEFAULT_JOBS, JOBS_KEY


@pytest.fixture
def signed_in_board(board):
    board.auth.register_user("Owner", "owner@example.com")
    board.auth.sign_in("owner@example.com")
    return board


class TestPostJob:
    """Test the post-a-job workflow."""

    def test_requires_sign_in(self, board, valid_job_posting):
        assert post_job(board, valid_job_posting) == {"status": "not-signed-in"}

    def test_created_with_attribution(self, signed_in_board, valid_job_posting):
        outcome = post_job(signed_in_board, valid_job_posting)

        assert outcome["status"] == "created"
        job = outcome["job"]
        user = signed_in_board.auth.get_current_user()
        assert job["posterId"] == user["id"]
        assert job["postedBy"] == "owner@example.com"
        assert job["postedByName"] == "Owner"
        assert signed_in_board.jobs.load_all()[0] == job

    def test_validation_error(self, signed_in_board, valid_job_posting):
        valid_job_posting["description"] = "short"
        outcome = post_job(signed_in_board, valid_job_posting)
        assert outcome["status"] == "validation_error"
        assert len(signed_in_board.jobs.load_all()) == 3

    def test_offline_job_drops_sample_link_and_normalises_price(self, signed_in_board, valid_job_posting):
        valid_job_posting.update({"isOnline": False, "price": "75.0", "title": "  Logo Designer  "})
        job = post_job(signed_in_board, valid_job_posting)["job"]
        assert job["sampleLink"] == ""
        assert job["price"] == 75
        assert job["title"] == "Logo Designer"

    def test_quota_exceeded(self, clock, valid_job_posting):
        board = Board(InMemoryRepository(quota_chars=3000), clock=clock)
        board.auth.register_user("Owner", "owner@example.com")
        board.auth.sign_in("owner@example.com")
        posting = {**valid_job_posting, "media": "A" * 5000, "mediaType": "image/png"}

        assert post_job(board, posting) == {"status": "quota-exceeded"}
        assert len(board.jobs.load_all()) == 3

    def test_storage_error_is_not_quota(self, clock, valid_job_posting):
        class LockedJobs(InMemoryRepository):
            def set(self, key, value):
                if key == JOBS_KEY:
                    raise RepositoryError("database is locked")
                super().set(key, value)

        board = Board(LockedJobs({JOBS_KEY: json.dumps(DEFAULT_JOBS)}), clock=clock)
        board.auth.register_user("Owner", "owner@example.com")
        board.auth.sign_in("owner@example.com")

        assert post_job(board, valid_job_posting) == {"status": "storage-error"}
        assert board.jobs.load_all() == DEFAULT_JOBS

    def test_owner_can_delete_own_post(self, signed_in_board, valid_job_posting):
        job = post_job(signed_in_board, valid_job_posting)["job"]
        user = signed_in_board.auth.get_current_user()
        assert signed_in_board.jobs.delete_by_id(job["id"], user) == {"ok": True}


class TestPostingDefaults:
    def test_blank_fields_filled(self):
        settings = {
            "defaultPosterType": "Company",
            "defaultCategory": "Design",
            "defaultCurrency": "AFN",
            "defaultLocation": "Kabul",
            "defaultOnline": True,
        }
        filled = apply_posting_defaults({"title": "x", "location": ""}, settings)
        assert filled["posterType"] == "Company"
        assert filled["category"] == "Design"
        assert filled["currency"] == "AFN"
        assert filled["location"] == "Kabul"
        assert filled["isOnline"] is True

    def test_given_values_kept(self):
        filled = apply_posting_defaults({"posterType": "Poster", "isOnline": False}, {"defaultPosterType": "Company", "defaultOnline": True})
        assert filled["posterType"] == "Poster"
        assert filled["isOnline"] is False


class TestCli:
    """End-to-end command runs against a JSON-file store."""

    @pytest.fixture
    def store(self, tmp_path):
        return str(tmp_path / "store.json")

    def run(self, *argv):
        main(list(argv))

    def test_version(self, capsys):
        self.run("--version")
        assert capsys.readouterr().out.strip() == "0.1.0"

    def test_list_seeded(self, store, capsys):
        self.run("list", "--store", store)
        out = capsys.readouterr().out
        assert "Jobs: 3 jobs found" in out
        assert out.index("[-1]") < out.index("[-2]") < out.index("[-3]")

    def test_list_filters_and_sort(self, store, capsys):
        self.run("list", "--store", store, "--category", "Translator")
        out = capsys.readouterr().out
        assert "Jobs: 1 jobs found" in out
        assert "Arabic to Dari Translator Needed" in out

        self.run("list", "--store", store, "--sort", "budget-low")
        out = capsys.readouterr().out
        assert out.index("[-3]") < out.index("[-2]") < out.index("[-1]")

    def test_list_zero_state(self, store, capsys):
        self.run("list", "--store", store, "--search", "plumber")
        out = capsys.readouterr().out
        assert "Jobs: 0 jobs found" in out

    def test_url_query_and_featured(self, store, capsys):
        self.run("list", "--store", store, "--url-query", "?search=BAKERY", "--featured")
        out = capsys.readouterr().out
        assert "Featured: 1 jobs found" in out
        assert "Social Media Manager for Local Bakery" in out

    def test_saved_settings_drive_list(self, store, capsys):
        self.run("settings", "--store", store, "--set", "jobCategory=Tutor", "--set", "notifications.productUpdates=true")
        settings = json.loads(capsys.readouterr().out)
        assert settings["jobCategory"] == "Tutor"
        assert settings["notifications"]["productUpdates"] is True

        self.run("list", "--store", store)
        out = capsys.readouterr().out
        assert "Jobs: 1 jobs found" in out
        assert "[-3]" in out

        self.run("list", "--store", store, "--clear")
        assert "Jobs: 3 jobs found" in capsys.readouterr().out

    def test_numeric_saved_search_is_ignored(self, store, capsys):
        self.run("settings", "--store", store, "--set", "jobSearch=2026")
        assert json.loads(capsys.readouterr().out)["jobSearch"] == 2026

        self.run("list", "--store", store)
        assert "Jobs: 3 jobs found" in capsys.readouterr().out

    def test_full_store_exits_with_message(self, store, monkeypatch, capsys):
        self.run("register", "--store", store, "--fullname", "Owner", "--email", "owner@example.com")
        monkeypatch.setenv("AFGJOBS_QUOTA_CHARS", "1")

        with pytest.raises(SystemExit) as exc:
            self.run("theme", "--store", store, "dark")
        assert "Could not save theme" in str(exc.value.code)

        with pytest.raises(SystemExit) as exc:
            self.run("login", "--store", store, "--email", "owner@example.com")
        assert "Could not sign in" in str(exc.value.code)

    def test_post_and_delete_flow(self, store, tmp_path, valid_job_posting, capsys):
        posting_file = tmp_path / "posting.json"
        posting_file.write_text(json.dumps(valid_job_posting))

        with pytest.raises(SystemExit):
            self.run("post", "--store", store, "--input", str(posting_file))

        self.run("register", "--store", store, "--fullname", "Owner", "--email", "owner@example.com")
        self.run("login", "--store", store, "--email", "owner@example.com")
        self.run("post", "--store", store, "--input", str(posting_file))
        out = capsys.readouterr().out
        assert "Status: created" in out
        job_id = out.split("Job: ")[1].split()[0]

        self.run("show", "--store", store, "--id", job_id)
        assert json.loads(capsys.readouterr().out)["title"] == valid_job_posting["title"]

        with pytest.raises(SystemExit) as exc:
            self.run("delete", "--store", store, "--id", "-1")
        assert "only delete jobs you posted" in str(exc.value.code)

        self.run("delete", "--store", store, "--id", job_id)
        assert f"Deleted job {job_id}" in capsys.readouterr().out

        with pytest.raises(SystemExit) as exc:
            self.run("delete", "--store", store, "--id", job_id)
        assert "not found" in str(exc.value.code)

    def test_validate_exit_code(self, tmp_path, capsys):
        posting_file = tmp_path / "bad.json"
        posting_file.write_text(json.dumps({"title": "x"}))
        with pytest.raises(SystemExit) as exc:
            self.run("validate", "--input", str(posting_file))
        assert exc.value.code == 2
        assert "Invalid:" in capsys.readouterr().out

    def test_theme_and_whoami(self, store, capsys):
        self.run("theme", "--store", store, "dark")
        self.run("whoami", "--store", store)
        out = capsys.readouterr().out
        assert "dark" in out
        assert "Not signed in." in out

    def test_submissions_and_stats(self, store, capsys):
        self.run("feedback", "--store", store, "--message", "Helpful site")
        self.run("subscribe", "--store", store, "--email", "reader@example.com")
        self.run("seeker", "--store", store, "--name", "Ali", "--location", "Kabul",
                 "--skills", "Carpentry and furniture repair for homes", "--contact", "ali@example.com")
        self.run("stats", "--store", store)
        out = capsys.readouterr().out
        assert "Thank you for your feedback." in out
        assert "You are subscribed." in out
        assert "Jobs posted: 3" in out
        assert "Categories: 3" in out

"""Tests for MailService: sequencing, replies, lookups, inbox, groups and reset."""

import os
import sys
import tempfile
import threading
import unittest
from pathlib import Path

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.db import init_db
from src.db.repositories import thread_repo
from src.mail.errors import AmbiguousMessageError, NotFoundError, ValidationError
from src.mail.sequencing import new_thread
from src.mail.service import MailService, parse_limit


class MailServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.db = init_db("sqlite:///:memory:")
        self.service = MailService(self.db)
        self.service.create_group("@g", ["alice", "bob", "carol"])

    def tearDown(self):
        self.db.dispose()


class TestCreateMessage(MailServiceTestCase):
    def test_new_thread_gets_id_zero(self):
        receipt = self.service.create_message("@g", "alice", ["bob"], "hello", subject="Hi")
        self.assertEqual(receipt.message_id, "0")
        self.assertTrue(receipt.new_thread_created)
        thread = self.service.get_thread(receipt.thread_id).thread
        self.assertEqual(thread.subject, "Hi")
        self.assertEqual(thread.created_by, "alice")

    def test_append_uses_last_index_plus_one(self):
        first = self.service.create_message("@g", "alice", ["bob"], "hello")
        for expected in ("1", "2", "3"):
            with self.db.session() as session:
                before = thread_repo.get_thread(session, first.thread_id).last_index
            receipt = self.service.create_message("@g", "bob", ["alice"], "more", thread_id=first.thread_id)
            self.assertEqual(receipt.message_id, str(int(before) + 1))
            self.assertEqual(receipt.message_id, expected)
            self.assertFalse(receipt.new_thread_created)
            self.assertEqual(receipt.thread_id, first.thread_id)

    def test_ids_are_gap_free_per_thread(self):
        a = self.service.create_message("@g", "alice", ["bob"], "a0")
        b = self.service.create_message("@g", "bob", ["carol"], "b0")
        for i in range(4):
            self.service.create_message("@g", "bob", ["alice"], f"a{i + 1}", thread_id=a.thread_id)
            if i % 2 == 0:
                self.service.create_message("@g", "carol", ["bob"], f"b{i + 1}", thread_id=b.thread_id)
        a_ids = [m.message_id for m in self.service.get_thread(a.thread_id).messages]
        b_ids = [m.message_id for m in self.service.get_thread(b.thread_id).messages]
        self.assertEqual(a_ids, ["0", "1", "2", "3", "4"])
        self.assertEqual(b_ids, ["0", "1", "2"])

    def test_unknown_thread_is_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.create_message("@g", "alice", ["bob"], "x", thread_id="no-such-thread")
        self.assertIn("no-such-thread", ctx.exception.message)

    def test_append_to_other_groups_thread_rejected(self):
        first = self.service.create_message("@g", "alice", ["bob"], "hello")
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_message("@other", "zed", ["alice"], "hi", thread_id=first.thread_id)
        self.assertIn("does not belong to group @other", ctx.exception.message)
        self.assertEqual([m.message_id for m in self.service.get_thread(first.thread_id).messages], ["0"])
        self.assertNotIn("@other", [g.id for g in self.service.list_groups()])

    def test_missing_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_message("", "", ["bob"], "")
        self.assertIn("groupId", ctx.exception.message)
        self.assertIn("from", ctx.exception.message)
        self.assertIn("body", ctx.exception.message)
        with self.assertRaises(ValidationError):
            self.service.create_message("@g", "alice", [], "body")

    def test_bootstraps_unknown_group(self):
        receipt = self.service.create_message("@fresh", "x", ["y"], "hi")
        self.assertEqual(receipt.message_id, "0")
        self.assertEqual(self.service.get_group("@fresh").agents, [])

    def test_concurrent_appends_never_share_an_id(self):
        with tempfile.TemporaryDirectory() as tmp:
            db = init_db(f"sqlite:///{Path(tmp) / 'mail.db'}")
            service = MailService(db)
            first = service.create_message("@g", "alice", ["bob"], "start")
            errors: list[Exception] = []

            def worker():
                try:
                    for _ in range(5):
                        service.create_message("@g", "bob", ["alice"], "r", thread_id=first.thread_id)
                except Exception as e:  # surfaced by the assertion below
                    errors.append(e)

            workers = [threading.Thread(target=worker) for _ in range(4)]
            for w in workers:
                w.start()
            for w in workers:
                w.join()
            ids = [m.message_id for m in service.get_thread(first.thread_id).messages]
            db.dispose()
        self.assertEqual(errors, [])
        self.assertEqual(ids, [str(i) for i in range(21)])


class TestEmailOperations(MailServiceTestCase):
    def test_write_reply_scenario(self):
        written = self.service.write_email("@g", "alice", ["bob"], "hello", subject="Hi")
        self.assertEqual(written.message_id, "0")
        self.assertTrue(written.new_thread_created)

        reply = self.service.reply_email(written.thread_id, "bob", "hey")
        self.assertEqual(reply.message_id, "1")
        self.assertFalse(reply.new_thread_created)
        stored = self.service.find_message("1", thread_id=written.thread_id)
        self.assertEqual(stored.to, ["alice"])
        self.assertEqual(stored.subject, "Re: Hi")

    def test_reply_all_excludes_replier(self):
        written = self.service.write_email("@g", "carol", ["alice"], "kickoff", subject="Plan")
        # message "1": from alice to bob and carol
        self.service.create_message("@g", "alice", ["bob", "carol"], "looping", thread_id=written.thread_id)
        receipt = self.service.reply_all_email(written.thread_id, "bob", "ack", reply_to_message_id="1")
        stored = self.service.find_message(receipt.message_id, thread_id=written.thread_id)
        self.assertEqual(set(stored.to), {"alice", "carol"})
        self.assertEqual(len(stored.to), 2)

    def test_reply_defaults_to_latest_message(self):
        written = self.service.write_email("@g", "alice", ["bob"], "m0", subject="Seq")
        self.service.reply_email(written.thread_id, "bob", "m1")
        self.service.reply_email(written.thread_id, "carol", "m2", reply_to_message_id="0")
        # latest is carol's message, so the reply targets carol
        receipt = self.service.reply_email(written.thread_id, "alice", "m3")
        stored = self.service.find_message(receipt.message_id, thread_id=written.thread_id)
        self.assertEqual(stored.to, ["carol"])

    def test_reply_to_specific_older_message(self):
        written = self.service.write_email("@g", "alice", ["bob"], "m0", subject="Seq")
        self.service.reply_email(written.thread_id, "bob", "m1")
        third = self.service.reply_email(written.thread_id, "carol", "m2")
        fourth = self.service.reply_email(written.thread_id, "alice", "m3", reply_to_message_id="1")
        stored = self.service.find_message(fourth.message_id, thread_id=written.thread_id)
        self.assertEqual(stored.to, ["bob"])
        self.assertEqual(fourth.message_id, str(int(third.message_id) + 1))

    def test_reply_subject_not_doubled(self):
        written = self.service.write_email("@g", "alice", ["bob"], "m0", subject="Re: Existing")
        receipt = self.service.reply_email(written.thread_id, "bob", "m1")
        self.assertEqual(self.service.find_message(receipt.message_id, written.thread_id).subject, "Re: Existing")

    def test_reply_without_subject(self):
        written = self.service.write_email("@g", "alice", ["bob"], "m0")
        receipt = self.service.reply_email(written.thread_id, "bob", "m1")
        self.assertEqual(self.service.find_message(receipt.message_id, written.thread_id).subject, "Re: No subject")

    def test_reply_to_own_message_has_no_recipients(self):
        written = self.service.write_email("@g", "alice", ["bob"], "m0")
        with self.assertRaises(ValidationError) as ctx:
            self.service.reply_email(written.thread_id, "alice", "talking to myself")
        self.assertIn("No valid recipients", ctx.exception.message)
        self.assertEqual(len(self.service.get_thread(written.thread_id).messages), 1)

    def test_reply_unknown_target(self):
        written = self.service.write_email("@g", "alice", ["bob"], "m0")
        with self.assertRaises(NotFoundError):
            self.service.reply_email(written.thread_id, "bob", "x", reply_to_message_id="9")
        with self.assertRaises(NotFoundError):
            self.service.reply_email("missing-thread", "bob", "x")

    def test_reply_group_mismatch(self):
        self.service.create_group("@other", ["bob"])
        written = self.service.write_email("@g", "alice", ["bob"], "m0")
        with self.assertRaises(ValidationError):
            self.service.reply_email(written.thread_id, "bob", "x", group_id="@other")

    def test_reply_requires_member(self):
        written = self.service.write_email("@g", "alice", ["bob"], "m0")
        with self.assertRaises(ValidationError) as ctx:
            self.service.reply_email(written.thread_id, "mallory", "x")
        self.assertEqual(ctx.exception.data["invalidAgents"], ["mallory"])

    def test_write_membership_fails_closed(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.write_email("@g", "alice", ["bob", "zed", "yan"], "hi")
        self.assertEqual(ctx.exception.data["invalidAgents"], ["zed", "yan"])
        with self.assertRaises(ValidationError) as ctx:
            self.service.write_email("@g", "mallory", ["bob"], "hi")
        self.assertEqual(ctx.exception.data["invalidAgents"], ["mallory"])
        self.assertEqual(self.service.get_group("@g").threads, [])

    def test_write_accepts_single_string_and_trims(self):
        receipt = self.service.write_email("@g", "alice", "  bob ", "hi")
        self.assertEqual(self.service.find_message("0", receipt.thread_id).to, ["bob"])

    def test_write_empty_recipients(self):
        with self.assertRaises(ValidationError):
            self.service.write_email("@g", "alice", ["", "  "], "hi")

    def test_write_to_new_group_needs_roster(self):
        with self.assertRaises(ValidationError):
            self.service.write_email("@brand-new", "alice", ["bob"], "hi")
        with self.assertRaises(NotFoundError):
            self.service.get_group("@brand-new")
        self.assertNotIn("@brand-new", [g.id for g in self.service.list_groups()])


class TestResolveReplyTarget(MailServiceTestCase):
    def test_empty_thread_is_an_error(self):
        thread = new_thread("@g", "alice", "Empty")
        with self.db.session() as session:
            thread_repo.create_thread(session, thread)
        with self.assertRaises(NotFoundError) as ctx:
            self.service.resolve_reply_target(thread.thread_id)
        self.assertIn("no messages", ctx.exception.message)

    def test_specific_and_latest(self):
        written = self.service.write_email("@g", "alice", ["bob"], "m0")
        self.service.reply_email(written.thread_id, "bob", "m1")
        self.assertEqual(self.service.resolve_reply_target(written.thread_id).message_id, "1")
        self.assertEqual(self.service.resolve_reply_target(written.thread_id, "0").body, "m0")


class TestFindMessage(MailServiceTestCase):
    def test_ambiguous_across_threads(self):
        a = self.service.write_email("@g", "alice", ["bob"], "first")
        b = self.service.write_email("@g", "carol", ["bob"], "second")
        with self.assertRaises(AmbiguousMessageError) as ctx:
            self.service.find_message("0")
        self.assertEqual(len(ctx.exception.thread_ids), 2)
        self.assertEqual(set(ctx.exception.thread_ids), {a.thread_id, b.thread_id})
        self.assertEqual({d["groupId"] for d in ctx.exception.data}, {"@g"})

    def test_unique_match(self):
        a = self.service.write_email("@g", "alice", ["bob"], "first")
        self.service.write_email("@g", "carol", ["bob"], "second")
        self.service.reply_email(a.thread_id, "bob", "only one")
        self.assertEqual(self.service.find_message("1").body, "only one")

    def test_group_filter_narrows(self):
        self.service.create_group("@other", ["zed", "yan"])
        self.service.write_email("@g", "alice", ["bob"], "in g")
        self.service.write_email("@other", "zed", ["yan"], "in other")
        self.assertEqual(self.service.find_message("0", group_id="@other").body, "in other")

    def test_not_found(self):
        with self.assertRaises(NotFoundError):
            self.service.find_message("0")
        with self.assertRaises(NotFoundError):
            self.service.find_message("0", thread_id="nope")
        with self.assertRaises(NotFoundError):
            self.service.find_message("0", group_id="@missing")


class TestInbox(MailServiceTestCase):
    def test_newest_first_and_limit(self):
        self.service.write_email("@g", "alice", ["bob"], "one", subject="First")
        self.service.write_email("@g", "carol", ["bob"], "two", subject="Second")
        inbox = self.service.get_inbox("@g", limit=2)
        self.assertEqual([m.subject for m in inbox], ["Second", "First"])
        self.assertEqual(len(self.service.get_inbox("@g", limit=1)), 1)

    def test_agent_filter_is_recipient(self):
        self.service.write_email("@g", "alice", ["bob"], "Hello from Alice")
        self.service.write_email("@g", "carol", ["alice"], "Inbound to Alice")
        inbox = self.service.get_inbox("@g", agent="alice")
        self.assertEqual([m.body for m in inbox], ["Inbound to Alice"])

    def test_preview_is_strict_prefix(self):
        body = "A" * 300 + "B" * 300
        self.service.write_email("@g", "alice", ["bob"], body)
        preview = self.service.get_inbox_preview("@g", limit=1)[0]
        self.assertEqual(len(preview.body_preview), 500)
        self.assertEqual(preview.body_preview, body[:500])

    def test_short_body_preview_unchanged(self):
        self.service.write_email("@g", "alice", ["bob"], "short")
        self.assertEqual(self.service.get_inbox_preview("@g")[0].body_preview, "short")

    def test_group_resolution(self):
        self.service.write_email("@g", "alice", ["bob"], "only group")
        self.assertEqual(len(self.service.get_inbox()), 1)
        self.service.create_group("@second", [])
        with self.assertRaises(ValidationError):
            self.service.get_inbox()
        with self.assertRaises(NotFoundError):
            self.service.get_inbox("@missing")

    def test_no_groups(self):
        self.service.reset()
        with self.assertRaises(NotFoundError) as ctx:
            self.service.get_inbox()
        self.assertIn("No groups", ctx.exception.message)

    def test_messages_by_and_for_agent(self):
        self.service.write_email("@g", "alice", ["bob"], "a->b")
        self.service.write_email("@g", "bob", ["alice", "carol"], "b->a,c")
        self.assertEqual([m.body for m in self.service.get_messages_by_agent("alice", "@g")], ["a->b"])
        self.assertEqual([m.body for m in self.service.get_messages_for_agent("carol")], ["b->a,c"])
        with self.assertRaises(NotFoundError):
            self.service.get_messages_by_agent("alice", "@missing")


class TestGroups(MailServiceTestCase):
    def test_ensure_group_is_idempotent(self):
        first = self.service.ensure_group("@new")
        second = self.service.ensure_group("@new")
        self.assertEqual(first.id, second.id)
        self.assertEqual(first.created_at, second.created_at)
        self.assertEqual([g.id for g in self.service.list_groups()].count("@new"), 1)

    def test_ensure_existing_keeps_roster(self):
        self.assertEqual(self.service.ensure_group("@g").agents, ["alice", "bob", "carol"])

    def test_create_duplicate_group(self):
        with self.assertRaises(ValidationError):
            self.service.create_group("@g", [])

    def test_add_agents_preserves_order_without_duplicates(self):
        group = self.service.add_agents("@g", ["dave", "alice", " erin ", "dave"])
        self.assertEqual(group.agents, ["alice", "bob", "carol", "dave", "erin"])
        with self.assertRaises(NotFoundError):
            self.service.add_agents("@missing", ["x"])

    def test_list_agents_single_group(self):
        self.assertEqual(self.service.list_agents().agents, ["alice", "bob", "carol"])

    def test_reset(self):
        written = self.service.write_email("@g", "alice", ["bob"], "hi")
        counts = self.service.reset()
        self.assertEqual(counts, {"messages": 1, "threads": 1, "groups": 1})
        self.assertEqual(self.service.list_groups(), [])
        with self.assertRaises(NotFoundError):
            self.service.get_thread(written.thread_id)


class TestParseLimit(unittest.TestCase):
    def test_parse_limit(self):
        self.assertEqual(parse_limit("5"), 5)
        self.assertEqual(parse_limit(3), 3)
        self.assertEqual(parse_limit(None), 10)
        self.assertEqual(parse_limit("0"), 10)
        self.assertEqual(parse_limit("-2"), 10)
        self.assertEqual(parse_limit("abc"), 10)
        self.assertEqual(parse_limit("2.5", fallback=7), 7)


if __name__ == "__main__":
    unittest.main()

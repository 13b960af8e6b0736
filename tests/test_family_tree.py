"""Tests for the store-backed family tree service and the family data sync."""

import pytest

from ancestree.errors import InvalidRequestError, NotFoundError
from ancestree.graph.family_sync import summarize_tree, tree_from_family_data
from ancestree.graph.family_tree import FAMILY_DATA, TREES, FamilyTreeService
from ancestree.models import (
    Edge,
    EdgeRelation,
    FamilyData,
    FamilyHead,
    FamilyMember,
    FamilyTree,
    Member,
)


@pytest.fixture
def service(store):
    return FamilyTreeService(store)


class TestTreeLoading:
    def test_first_access_creates_empty_tree(self, service, store):
        tree = service.get_tree("u1")
        assert tree.owner_user_id == "u1"
        assert tree.members == [] and tree.edges == []
        assert store.get(TREES, "u1")["ownerUserId"] == "u1"

    def test_missing_user_rejected(self, service):
        with pytest.raises(InvalidRequestError):
            service.get_tree("")

    def test_malformed_entries_dropped(self, service, store):
        store.set(TREES, "u1", {
            "ownerUserId": "u1",
            "members": [{"id": "a", "fullName": "Ann"}, {"fullName": "no id"}, "junk"],
            "edges": [
                {"fromId": "a", "toId": "b", "relation": "parent"},
                {"fromId": "a", "toId": "b", "relation": "best-friend"},
            ],
        })
        tree = service.get_tree("u1")
        assert [m.id for m in tree.members] == ["a"]
        assert [e.key for e in tree.edges] == [("a", "b", "parent")]

    def test_from_document_none(self):
        assert FamilyTree.from_document("u1", None).members == []


class TestMutations:
    def test_add_member_persists(self, service, store):
        service.add_member("u1", Member(id="m1", full_name="Ann", relationship_to_user="mother"))
        service.add_member("u1", Member(id="m1", full_name="Ann B", relationship_to_user="mother"))
        doc = store.get(TREES, "u1")
        assert doc["members"] == [{"id": "m1", "fullName": "Ann B", "relationshipToUser": "mother"}]

    def test_link_and_delete(self, service):
        service.add_member("u1", Member(id="a", full_name="Ann"))
        service.add_member("u1", Member(id="b", full_name="Bob"))
        edge = Edge(from_id="a", to_id="b", relation=EdgeRelation.CHILD)
        service.link_relation("u1", edge)
        tree = service.link_relation("u1", edge)
        assert len(tree.edges) == 1

        tree = service.delete_member("u1", "b")
        assert tree.edges == []
        assert service.get_tree("u1").edges == []

    def test_reciprocal_is_opt_in(self, service):
        edge = Edge(from_id="a", to_id="b", relation=EdgeRelation.PARENT)
        assert len(service.link_relation("u1", edge).edges) == 1
        tree = service.link_relation("u1", edge, reciprocal=True)
        assert {e.key for e in tree.edges} == {("a", "b", "parent"), ("b", "a", "child")}

    def test_add_relative(self, service):
        service.add_member("u1", Member(id="me", full_name="Me", x=100, y=100))
        tree = service.add_relative("u1", Member(id="mum", full_name="Ann"), "me", EdgeRelation.PARENT)
        assert tree.edges[0].key == ("me", "mum", "parent")
        assert service.get_tree("u1").get_member("mum").x == 260

    def test_move_member(self, service):
        service.add_member("u1", Member(id="a", full_name="Ann"))
        tree = service.move_member("u1", "a", 42.4, 7)
        assert (tree.get_member("a").x, tree.get_member("a").y) == (42, 7)
        with pytest.raises(NotFoundError):
            service.move_member("u1", "ghost", 1, 1)

    def test_groups(self, service):
        service.add_member("u1", Member(id="me", full_name="Me"))
        service.add_member("u1", Member(id="f", full_name="Joe", relationship_to_user="father"))
        service.add_member("u1", Member(id="s", full_name="Sue"))
        service.link_relation("u1", Edge(from_id="me", to_id="s", relation=EdgeRelation.SIBLING))

        groups, labels = service.get_groups("u1", owner_id="me")
        assert [m.id for m in groups.parents] == ["f"]
        assert [m.id for m in groups.siblings] == ["s"]
        assert labels.father.id == "f"


class TestFamilyDataSync:
    def data(self):
        return FamilyData(
            family_heads=[FamilyHead(id="h1", name="Ravi", relationship="father")],
            family_members=[
                FamilyMember(id="m1", name="Lata", relationship="mother", relationship_to_user="grandmother", connected_to="h1"),
                FamilyMember(id="m2", name="Asha", relationship="wife", relationship_to_user="mother", connected_to="h1"),
                FamilyMember(id="m3", name="Kiran", relationship="son", relationship_to_user="brother", connected_to="h1"),
                FamilyMember(id="m4", name="Vijay", relationship="brother", relationship_to_user="uncle", connected_to="h1"),
                FamilyMember(id="m5", name="Nobody", relationship_to_user="cousin", connected_to="missing"),
            ],
        )

    def test_members_and_edges(self):
        tree = tree_from_family_data("u1", self.data())
        assert [m.id for m in tree.members] == ["h1", "m1", "m2", "m3", "m4", "m5"]
        assert [e.key for e in tree.edges] == [
            ("h1", "m1", "grandparent"),
            ("h1", "m2", "parent"),
            ("h1", "m3", "sibling"),
            ("h1", "m4", "cousin"),
        ]
        assert tree.get_member("h1").gender == "M"
        assert tree.get_member("m1").gender == "F"
        assert tree.get_member("m5").gender is None

    def test_in_law_becomes_cousin_edge(self):
        data = FamilyData(
            family_heads=[FamilyHead(id="h1", name="Ravi")],
            family_members=[
                FamilyMember(id="m1", name="Gopal", relationship_to_user="father-in-law", connected_to="h1"),
            ],
        )
        tree = tree_from_family_data("u1", data)
        assert [e.key for e in tree.edges] == [("h1", "m1", "cousin")]

    def test_save_overwrites_both_documents(self, service, store):
        service.add_member("u1", Member(id="old", full_name="Old"))
        data = self.data()
        tree = service.save_family_data("u1", data.family_heads, data.family_members)

        assert store.get(TREES, "u1")["members"][0]["id"] == "h1"
        assert service.get_tree("u1").get_member("old") is None
        assert len(tree.edges) == 4

        saved = service.get_family_data("u1")
        assert [h.name for h in saved.family_heads] == ["Ravi"]
        assert store.get(FAMILY_DATA, "u1")["familyMembers"][0]["connectedTo"] == "h1"

    def test_missing_family_data_is_empty(self, service):
        data = service.get_family_data("nobody")
        assert data.family_heads == [] and data.family_members == []

    def test_malformed_family_data_dropped(self, service, store):
        store.set(FAMILY_DATA, "u1", {
            "familyHeads": [{"id": "h"}, {"id": "h1", "name": "Ravi"}],
            "familyMembers": [{"name": "no id"}, {"id": "m1", "name": "Asha", "connectedTo": "h1"}],
        })
        data = service.get_family_data("u1")
        assert [h.id for h in data.family_heads] == ["h1"]
        assert [m.id for m in data.family_members] == ["m1"]

    def test_family_data_from_none(self):
        assert FamilyData.from_document(None).family_heads == []

    def test_summary(self):
        tree = tree_from_family_data("u1", self.data())
        text = summarize_tree(tree)
        assert "- Lata (grandmother)" in text
        assert "- Asha is parent of Ravi" in text
        assert summarize_tree(FamilyTree.empty("u1")) == "None"

"""Tests for the relationship classifier and parent labelling."""

from ancestree.graph.classifier import (
    classify,
    classify_tree,
    label_parents,
    related_ids,
    spouses_of,
)
from ancestree.graph import tree_ops
from ancestree.models import Edge, EdgeRelation, FamilyTree, Member


def member(id, name=None, rel=None):
    return Member(id=id, full_name=name or id.title(), relationship_to_user=rel)


class TestLabelBuckets:
    """Members that carry a relationship-to-user label."""

    def test_mother_is_parent(self):
        groups = classify([member("m1", "Ann", "mother")], [])
        assert [m.id for m in groups.parents] == ["m1"]
        assert groups.siblings == []

    def test_step_sister_is_sibling(self):
        groups = classify([member("s1", "Beth", "Step-Sister")], [])
        assert [m.id for m in groups.siblings] == ["s1"]
        assert groups.parents == []

    def test_grandmother_goes_to_other(self):
        groups = classify([member("g1", "Gran", "grandmother")], [])
        assert groups.parents == []
        assert [m.id for m in groups.other["grandmother"]] == ["g1"]

    def test_in_laws_go_to_other(self):
        groups = classify([member("i1", "Meera", "Mother-in-law"), member("i2", "Raj", "brother-in-law")], [])
        assert groups.parents == [] and groups.siblings == []
        assert sorted(m.id for bucket in groups.other.values() for m in bucket) == ["i1", "i2"]

    def test_unknown_label_keyed_by_lowercase_text(self):
        groups = classify([member("f1", "Fred", "Family Friend")], [])
        assert list(groups.other) == ["family friend"]

    def test_label_wins_over_edges(self):
        members = [member("me"), member("b1", "Bob", "brother")]
        edges = [Edge(from_id="me", to_id="b1", relation=EdgeRelation.PARENT)]
        groups = classify(members, edges)
        assert [m.id for m in groups.siblings] == ["b1"]
        assert groups.parents == []


class TestEdgeBuckets:
    """Members without a label are placed by edges pointing at them."""

    def test_parent_and_sibling_edges(self):
        members = [member("me"), member("p1"), member("s1"), member("c1")]
        edges = [
            Edge(from_id="me", to_id="p1", relation=EdgeRelation.PARENT),
            Edge(from_id="me", to_id="s1", relation=EdgeRelation.SIBLING),
            Edge(from_id="me", to_id="c1", relation=EdgeRelation.COUSIN),
        ]
        groups = classify(members, edges, owner_id="me")
        assert [m.id for m in groups.parents] == ["p1"]
        assert [m.id for m in groups.siblings] == ["s1"]
        assert [m.id for m in groups.other["cousin"]] == ["c1"]

    def test_owner_is_never_bucketed(self):
        members = [member("me"), member("p1")]
        edges = [
            Edge(from_id="p1", to_id="me", relation=EdgeRelation.CHILD),
            Edge(from_id="me", to_id="p1", relation=EdgeRelation.PARENT),
        ]
        groups = classify(members, edges, owner_id="me")
        assert "child" not in groups.other
        assert [m.id for m in groups.parents] == ["p1"]

    def test_owner_filters_foreign_edges(self):
        members = [member("me"), member("p1"), member("x1")]
        edges = [Edge(from_id="p1", to_id="x1", relation=EdgeRelation.PARENT)]
        assert classify(members, edges, owner_id="me").parents == []
        assert [m.id for m in classify(members, edges).parents] == ["x1"]

    def test_buckets_deduplicate_by_id(self):
        members = [member("me"), member("p1")]
        edges = [
            Edge(from_id="me", to_id="p1", relation=EdgeRelation.PARENT),
            Edge(from_id="other", to_id="p1", relation=EdgeRelation.PARENT),
        ]
        groups = classify(members, edges)
        assert [m.id for m in groups.parents] == ["p1"]

    def test_member_without_data_is_in_no_bucket(self):
        groups = classify([member("lonely")], [])
        assert groups.to_dict() == {"parents": [], "siblings": [], "other": {}}


class TestRobustness:
    def test_empty_input(self):
        groups = classify([], [])
        assert groups.parents == [] and groups.siblings == [] and groups.other == {}
        assert classify(None, None).to_dict()["other"] == {}

    def test_deterministic(self):
        members = [
            member("me"),
            member("a", "Ann", "mother"),
            member("b", "Bob", "Step-Brother"),
            member("c", "Cy", "grandfather"),
            member("d"),
        ]
        edges = [Edge(from_id="me", to_id="d", relation=EdgeRelation.SPOUSE)]
        first = classify(members, edges, owner_id="me").to_dict()
        for _ in range(5):
            assert classify(members, edges, owner_id="me").to_dict() == first


class TestSpouseLookup:
    """Spouse lookup is symmetric, parent edges are not."""

    def test_spouse_seen_from_both_ends(self):
        tree = FamilyTree(owner_user_id="u1")
        tree = tree_ops.add_member(tree, member("a", "Ann"))
        tree = tree_ops.add_member(tree, member("b", "Bob"))
        tree = tree_ops.link_relation(tree, Edge(from_id="a", to_id="b", relation=EdgeRelation.SPOUSE))

        assert [m.id for m in spouses_of("a", tree)] == ["b"]
        assert [m.id for m in spouses_of("b", tree)] == ["a"]
        assert len(tree.edges) == 1

    def test_parent_edge_not_reversed(self):
        edges = [Edge(from_id="kid", to_id="mum", relation=EdgeRelation.PARENT)]
        assert related_ids("kid", edges, EdgeRelation.PARENT) == ["mum"]
        assert related_ids("mum", edges, EdgeRelation.PARENT) == []
        assert related_ids("mum", edges, EdgeRelation.CHILD) == []


class TestParentLabels:
    def test_labels_from_names(self):
        tree = FamilyTree(owner_user_id="u1", members=[
            member("p1", "Father Joe"),
            member("p2", "Mother Mary"),
        ])
        labels = label_parents(tree.members, tree)
        assert labels.father.id == "p1"
        assert labels.mother.id == "p2"
        assert labels.unlabelled == []

    def test_label_from_relationship_text(self):
        tree = FamilyTree(owner_user_id="u1", members=[member("p1", "Joe", "father")])
        assert label_parents(tree.members, tree).father.id == "p1"

    def test_complement_from_spouse_name(self):
        tree = FamilyTree(
            owner_user_id="u1",
            members=[member("p1", "Father Joe"), member("p2", "Mary", "parent")],
            edges=[Edge(from_id="p1", to_id="p2", relation=EdgeRelation.SPOUSE)],
        )
        groups = classify_tree(tree)
        labels = label_parents([tree.get_member("p2")], tree)
        assert labels.mother.id == "p2"
        assert [m.id for m in groups.parents] == ["p2"]

    def test_unlabelled_parents(self):
        tree = FamilyTree(owner_user_id="u1", members=[member("p1", "Sam", "parent")])
        labels = label_parents(tree.members, tree)
        assert labels.father is None and labels.mother is None
        assert [m.id for m in labels.unlabelled] == ["p1"]
        assert labels.to_dict()["father"] is None

    def test_gender_is_not_a_label(self):
        tree = FamilyTree(owner_user_id="u1", members=[
            Member(id="p1", full_name="Priya", gender="F", relationship_to_user="parent"),
            Member(id="p2", full_name="Arun", gender="M", relationship_to_user="parent"),
        ])
        labels = label_parents(tree.members, tree)
        assert labels.mother is None and labels.father is None
        assert [m.id for m in labels.unlabelled] == ["p1", "p2"]

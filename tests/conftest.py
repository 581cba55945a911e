# tests/conftest.py
"""Shared Rust and S-expression sources for the implnew test suite."""


# ─── Rust declarations ───────────────────────────────────────────────

PERSON_RS = """\
#[derive(ImplNew)]
struct Person {
    pub name: String,
    pub age: u32,
    secret: String,
}
"""

SESSION_RS = """\
#[derive(ImplNew)]
struct Session {
    pub username: String,
    #[default("empty_token".to_string())]
    token: String,
}
"""

WRAPPER_RS = """\
#[derive(ImplNew)]
struct Wrapper<T> {
    pub value: T,
    count: usize,
}
"""

AMBIGUOUS_RS = """\
#[derive(ImplNew)]
struct Retry {
    pub url: String,
    #[default(3)]
    #[default(5)]
    attempts: u8,
}
"""

EMPTY_RS = """\
#[derive(ImplNew)]
struct Marker {}
"""

ALL_PRIVATE_RS = """\
#[derive(ImplNew)]
struct Counter {
    hits: u64,
    #[default(vec![1, 2, 3])]
    buckets: Vec<u32>,
}
"""

RICH_GENERICS_RS = """\
/// A buffer borrowed for `'a`.
#[derive(Debug, ImplNew)]
pub struct Buffer<'a, 'b: 'a, T: Clone + Send = u8, const N: usize = 16>
where
    T: Default,
{
    pub data: &'a [T; N],
    // Comment between fields.
    pub(crate) cursor: usize,
    #[default(Some(&[]))]
    spare: Option<&'b [T]>,
}
"""

MIXED_VIS_RS = """\
#[derive(ImplNew)]
pub struct Config {
    pub host: String,
    pub(crate) port: u16,
    pub(super) retries: u8,
    pub(in crate::net) timeout: std::time::Duration,
    verbose: bool,
}
"""

MULTI_ITEM_RS = """\
//! Module docs.
#![allow(dead_code)]

use std::collections::HashMap;

const LIMIT: usize = 10;

#[derive(ImplNew)]
struct First {
    pub id: u32,
    cache: HashMap<String, u8>,
}

#[derive(Debug, Clone)]
struct NotDerived {
    pub x: i32,
}

impl First {
    fn id(&self) -> u32 { self.id }
}

#[derive(ImplNew)]
struct Broken {
    #[default(1, 2)]
    value: u8,
}

mod inner {
    #[derive(impl_new::ImplNew)]
    pub struct Nested {
        pub label: &'static str,
        count: u8,
    }
}

#[derive(ImplNew)]
enum Choice { A, B }

macro_rules! noop { () => {}; }
noop!();
"""

TUPLE_RS = """\
#[derive(ImplNew)]
struct Meters(pub f64);
"""

UNIT_RS = """\
#[derive(ImplNew)]
struct Unit;
"""


# ─── S-expression requests ───────────────────────────────────────────

WRAPPER_SEXP = """\
(struct Wrapper
  (generics (type T "Clone" "Debug") (lifetime "'a") (const N "usize"))
  (where "T: Default")
  (field value "T" pub)
  (field count "usize" (attr default "5")))
"""

MULTI_SEXP = """\
(structs
  (struct Person
    (field name String pub)
    (field age u32 pub)
    (field secret String))
  (tuple-struct Meters))
"""

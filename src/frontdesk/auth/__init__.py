"""Sign-in against Supabase Auth and the cookies that carry identity."""
